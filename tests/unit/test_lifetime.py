"""컨테이너의 라이프스타일(singleton, scoped, transient) 계약을 테스트합니다."""
import pytest

from fastuow.core import ConfigurationError
from fastuow.lifetime import Container, Lifestyle, close_all


class Resource:
    def __init__(self):
        self.close_count = 0

    def close(self):
        self.close_count += 1


class Consumer:
    def __init__(self, resource, label="default"):
        self.resource = resource
        self.label = label


@pytest.fixture
def container():
    return Container()


def test_singleton_resolves_same_instance(container: Container):
    container.register("resource", Resource, Lifestyle.SINGLETON)

    resource2 = container.resolve("resource")
    resource1 = container.resolve("resource")
    assert resource1 is resource2


def test_singleton_is_shared_across_scopes(container: Container):
    container.register("resource", Resource, Lifestyle.SINGLETON)

    with container.begin_scope():
        resource1 = container.resolve("resource")
    with container.begin_scope():
        resource2 = container.resolve("resource")

    assert resource1 is resource2
    assert resource1.close_count == 0, "스코프가 닫혀도 싱글톤은 닫히지 않아야 합니다."


def test_scoped_resolves_same_instance_within_scope(container: Container):
    container.register("resource", Resource, Lifestyle.SCOPED)

    with container.begin_scope():
        resource2 = container.resolve("resource")
        resource1 = container.resolve("resource")
        assert resource1 is resource2


def test_scoped_resolves_distinct_instances_across_scopes(container: Container):
    container.register("resource", Resource, Lifestyle.SCOPED)

    with container.begin_scope():
        resource1 = container.resolve("resource")
    with container.begin_scope():
        resource2 = container.resolve("resource")

    assert resource1 is not resource2


def test_scoped_outside_of_scope_is_an_error(container: Container):
    container.register("resource", Resource, Lifestyle.SCOPED)

    with pytest.raises(ConfigurationError, match="outside of an active scope"):
        container.resolve("resource")

    with container.begin_scope():
        container.resolve("resource")

    # 스코프가 닫힌 뒤에도 새 인스턴스를 몰래 만들어 주지 않아야 합니다.
    with pytest.raises(ConfigurationError):
        container.resolve("resource")


def test_scope_closes_its_instances_exactly_once(container: Container):
    container.register("resource", Resource, Lifestyle.SCOPED)

    with container.begin_scope() as scope:
        resource = container.resolve("resource")
        assert resource.close_count == 0
        scope.close()

    assert resource.close_count == 1


def test_scope_closes_instances_even_on_error(container: Container):
    container.register("resource", Resource, Lifestyle.SCOPED)

    class MyException(Exception):
        pass

    with pytest.raises(MyException):
        with container.begin_scope():
            resource = container.resolve("resource")
            raise MyException()

    assert resource.close_count == 1
    assert container.scope is None


def test_nested_scope_does_not_share_instances(container: Container):
    container.register("resource", Resource, Lifestyle.SCOPED)

    with container.begin_scope() as outer:
        outer_resource = container.resolve("resource")
        with container.begin_scope() as inner:
            assert container.scope is inner
            inner_resource = container.resolve("resource")
        assert container.scope is outer
        assert inner_resource is not outer_resource
        assert inner_resource.close_count == 1
        assert outer_resource.close_count == 0
        assert container.resolve("resource") is outer_resource


def test_scopes_of_different_containers_are_independent(container: Container):
    other = Container()
    container.register("resource", Resource, Lifestyle.SCOPED)
    other.register("resource", Resource, Lifestyle.SCOPED)

    with container.begin_scope() as scope:
        assert other.scope is None
        with pytest.raises(ConfigurationError, match="outside of an active scope"):
            other.resolve("resource")

        with other.begin_scope() as other_scope:
            assert container.scope is scope
            assert other.scope is other_scope
            assert other.resolve("resource") is not container.resolve("resource")

        assert container.scope is scope
        assert other.scope is None


def test_transient_resolves_new_instance(container: Container):
    container.register("resource", Resource)

    assert container.resolve("resource") is not container.resolve("resource")


def test_dependencies_are_injected_by_parameter_name(container: Container):
    container.register("resource", Resource, Lifestyle.SCOPED)
    container.register("consumer", Consumer)

    with container.begin_scope():
        consumer1 = container["consumer"]
        consumer2 = container["consumer"]
        assert consumer1 is not consumer2
        assert consumer1.resource is consumer2.resource
        assert consumer1.label == "default"  # 등록되지 않은 기본값 파라메터


def test_missing_dependency_is_an_error(container: Container):
    container.register("consumer", Consumer)

    with pytest.raises(ConfigurationError, match="missing dependency 'resource'"):
        container.resolve("consumer")


def test_unknown_name_is_an_error(container: Container):
    with pytest.raises(ConfigurationError, match="no registration"):
        container.resolve("nothing")


def test_duplicate_registration_is_an_error(container: Container):
    container.register("resource", Resource)

    with pytest.raises(ConfigurationError, match="already registered"):
        container.register("resource", Resource)


def test_singleton_cannot_capture_scoped_dependency(container: Container):
    container.register("resource", Resource, Lifestyle.SCOPED)
    container.register("consumer", Consumer, Lifestyle.SINGLETON)

    with container.begin_scope():
        with pytest.raises(ConfigurationError, match="lifestyle mismatch"):
            container.resolve("consumer")


def test_circular_dependency_is_an_error(container: Container):
    container.register("a", lambda b: b)
    container.register("b", lambda a: a)

    with pytest.raises(ConfigurationError, match="circular dependency: a -> b -> a"):
        container.resolve("a")


def test_close_releases_singletons_once(container: Container):
    container.register("resource", Resource, Lifestyle.SINGLETON)
    resource = container.resolve("resource")

    container.close()
    container.close()

    assert resource.close_count == 1
    with pytest.raises(ConfigurationError, match="closed"):
        container.resolve("resource")


def test_close_all_closes_everything_and_reraises_first_error():
    class Broken:
        def close(self):
            raise RuntimeError("broken")

    first, last = Resource(), Resource()
    with pytest.raises(RuntimeError, match="broken"):
        close_all([first, Broken(), object(), last])

    assert first.close_count == 1
    assert last.close_count == 1
