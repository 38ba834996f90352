from __future__ import annotations

import pytest

from namedhttp.exceptions import (
    DuplicateRegistrationError,
    FactoryInvocationError,
    InvalidRegistrationError,
    UnknownHandlerError,
)
from namedhttp.handlers import (
    DelegatingHandler,
    HandlerContext,
    HandlerRegistration,
    HandlerRegistryBuilder,
    StatusCodeHandler,
    StatusCodeOptions,
    status_code_handler_factory,
)
from namedhttp.options import NamedOptionsResolver


class NamedHandler(DelegatingHandler):
    def __init__(self, client_name: str) -> None:
        super().__init__()
        self.client_name = client_name


def _set_factory(factory):
    def configure(registration: HandlerRegistration) -> None:
        registration.factory = factory

    return configure


def test_register_and_resolve_builds_handler_for_client_name():
    builder = HandlerRegistryBuilder()
    builder.register("named", _set_factory(lambda ctx, name: NamedHandler(name)))
    registry = builder.build()

    context = HandlerContext(NamedOptionsResolver(), "foo-v1")
    handler = registry.resolve("named", context, "foo-v1")

    assert isinstance(handler, NamedHandler)
    assert handler.client_name == "foo-v1"
    assert "named" in registry
    assert registry.names() == ["named"]


def test_resolve_never_caches_instances():
    builder = HandlerRegistryBuilder()
    builder.register("named", _set_factory(lambda ctx, name: NamedHandler(name)))
    registry = builder.build()
    context = HandlerContext(NamedOptionsResolver(), "foo-v1")

    first = registry.resolve("named", context, "foo-v1")
    second = registry.resolve("named", context, "foo-v1")

    assert first is not second


def test_duplicate_registration_is_rejected():
    builder = HandlerRegistryBuilder()
    builder.register("status-handler", _set_factory(status_code_handler_factory))

    with pytest.raises(DuplicateRegistrationError) as exc_info:
        builder.register("status-handler", _set_factory(status_code_handler_factory))

    assert exc_info.value.data == {"handler_name": "status-handler"}
    assert len(builder.build()) == 1


def test_registration_without_factory_is_invalid():
    builder = HandlerRegistryBuilder()

    with pytest.raises(InvalidRegistrationError):
        builder.register("empty", lambda registration: None)

    assert "empty" not in builder.build()


def test_blank_handler_name_is_invalid():
    builder = HandlerRegistryBuilder()
    with pytest.raises(InvalidRegistrationError):
        builder.register("  ", _set_factory(status_code_handler_factory))


def test_registration_after_build_is_rejected():
    builder = HandlerRegistryBuilder()
    registry = builder.build()

    with pytest.raises(InvalidRegistrationError):
        builder.register("late", _set_factory(status_code_handler_factory))

    assert builder.is_built
    assert builder.build() is registry
    assert len(registry) == 0


def test_handler_decorator_registers_factory():
    builder = HandlerRegistryBuilder()

    @builder.handler("named")
    def make_named(ctx: HandlerContext, client_name: str) -> NamedHandler:
        return NamedHandler(client_name)

    registry = builder.build()
    assert registry.get_registration("named").factory is make_named


def test_unknown_handler_raises():
    registry = HandlerRegistryBuilder().build()
    context = HandlerContext(NamedOptionsResolver(), "foo-v1")

    with pytest.raises(UnknownHandlerError) as exc_info:
        registry.resolve("ghost", context, "foo-v1")

    assert "ghost" in exc_info.value.message


def test_factory_failure_is_wrapped_with_cause():
    boom = RuntimeError("boom")

    def failing(ctx, name):
        raise boom

    builder = HandlerRegistryBuilder()
    builder.register("failing", _set_factory(failing))
    registry = builder.build()
    context = HandlerContext(NamedOptionsResolver(), "foo-v1")

    with pytest.raises(FactoryInvocationError) as exc_info:
        registry.resolve("failing", context, "foo-v1")

    assert exc_info.value.cause is boom
    assert exc_info.value.__cause__ is boom
    assert exc_info.value.data == {"handler_name": "failing", "client_name": "foo-v1"}


def test_factory_returning_non_handler_is_rejected():
    builder = HandlerRegistryBuilder()
    builder.register("wrong", _set_factory(lambda ctx, name: object()))
    registry = builder.build()
    context = HandlerContext(NamedOptionsResolver(), "foo-v1")

    with pytest.raises(FactoryInvocationError):
        registry.resolve("wrong", context, "foo-v1")


def test_factory_sees_options_for_requested_client():
    resolver = NamedOptionsResolver()
    resolver.configure_named(StatusCodeOptions, "bar-v1", lambda o: setattr(o, "status_code", 404))
    builder = HandlerRegistryBuilder()
    builder.register("status-handler", _set_factory(status_code_handler_factory))
    registry = builder.build()

    foo = registry.resolve("status-handler", HandlerContext(resolver, "foo-v1"), "foo-v1")
    bar = registry.resolve("status-handler", HandlerContext(resolver, "bar-v1"), "bar-v1")

    assert isinstance(foo, StatusCodeHandler)
    assert foo.options.status_code == 200
    assert bar.options.status_code == 404
