import logging

import pytest

from assembly.builders import make_container
from assembly.container import Container
from assembly.domain import ContainerState
from assembly.errors import (
    ConfigurationValidationError,
    CyclicDependencyError,
    DuplicateBuildError,
    IncompleteBuildError,
    MissingDependencyError,
    RegistrationAfterBuildError,
    UnknownProducerError,
)
from assembly.producer import Producer
from assembly.registry import ProducerRegistry

from example_producers import (
    EXAMPLE_PRODUCERS,
    AppContext,
    Flags,
    FlagsProducer,
    HypePerson,
    HypePersonProducer,
    LoggerProducer,
    Timing,
    TimingProducer,
    example_configuration,
    static_producer,
)


@pytest.fixture
def configuration():
    return example_configuration()


@pytest.fixture
def container(configuration):
    return Container(
        context=AppContext(name="Test", env="Test"),
        configuration=configuration,
        producers=EXAMPLE_PRODUCERS,
    )


def test_can_build_a_dependency_chain(container):
    artifacts = container.build()

    assert isinstance(artifacts["logger"], logging.Logger)
    assert isinstance(artifacts["flags"], Flags)
    assert isinstance(artifacts["timing"], Timing)
    assert isinstance(artifacts["hype_person"], HypePerson)
    assert container.state is ContainerState.BUILT


def test_built_artifacts_are_wired_together(container):
    container.build()
    flags = container.fetch("flags")

    assert flags.logger is container.fetch("logger")
    assert flags.timing is container.fetch("timing")
    assert flags.hype_person is container.fetch("hype_person")
    assert flags.fetch("a") == 1
    flags.set("a", 10)
    assert flags.state() == {"a": 10, "b": 2, "c": 3}
    flags.reset("a")
    assert flags.fetch("a") == 1


def test_logger_uses_context_and_configuration(container):
    container.build()
    logger = container["logger"]

    assert logger.name == "Test.Test"
    assert logger.level == logging.INFO


def test_build_order(container):
    assert container.build_order() == ["logger", "hype_person", "timing", "flags"]
    container.build()
    assert container.build_order() == ["logger", "hype_person", "timing", "flags"]


def test_dependency_graph(container):
    assert container.dependency_graph().as_dict() == {
        "logger": [],
        "flags": ["logger", "timing", "hype_person"],
        "timing": ["logger", "hype_person"],
        "hype_person": [],
    }


def test_register_returns_registered_producers():
    container = Container(producers=[LoggerProducer, FlagsProducer, HypePersonProducer])

    assert container.register(TimingProducer) == [
        LoggerProducer,
        FlagsProducer,
        HypePersonProducer,
        TimingProducer,
    ]


def test_can_build_with_newly_registered_producer(configuration):
    container = Container(
        context=AppContext(name="Test"),
        configuration=configuration,
        producers=[LoggerProducer, FlagsProducer, HypePersonProducer],
    )
    container.register(TimingProducer)

    assert isinstance(container.build()["timing"], Timing)


def test_registering_after_build_raises(container):
    container.build()

    with pytest.raises(RegistrationAfterBuildError, match="Cannot register TimingProducer"):
        container.register(TimingProducer)


def test_building_twice_raises(container):
    container.build()

    with pytest.raises(DuplicateBuildError, match="Cannot build a container more than once"):
        container.build()


def test_disabled_optional_dependency_is_excluded(container, configuration):
    configuration["hype_person"] = {"enabled": False}

    artifacts = container.build()

    assert artifacts["hype_person"] is None
    assert container.fetch("flags").hype_person is None
    assert "hype_person" not in container
    assert "flags" in container


def test_disabled_required_dependency_crashes_build(container, configuration):
    configuration["timing"] = {"enabled": False}

    with pytest.raises(
        MissingDependencyError, match="Dependencies for `flags` are not present: timing"
    ):
        container.build()


def test_optional_dependency_without_producer_resolves_to_none():
    a = static_producer("a")
    b = static_producer("b", requires=("a",))
    c = static_producer("c", requires=("b",), optional=("d",))

    container = Container(producers=[a, b, c])
    artifacts = container.build()

    assert container.build_order() == ["a", "b", "c"]
    assert list(artifacts) == ["a", "b", "c"]
    assert c.received == [{"b": "b", "d": None}]


def test_optional_dependency_without_producer_raises_when_required_to_be_complete():
    container = Container(
        producers=[static_producer("c", optional=("d",))], require_optional=True
    )

    with pytest.raises(UnknownProducerError, match="'d' requested by 'c'"):
        container.build()


def test_required_dependency_on_disabled_producer_raises():
    container = Container(
        producers=[
            static_producer("e", requires=("f",)),
            static_producer("f", is_enabled=False),
        ]
    )

    with pytest.raises(MissingDependencyError, match="Dependencies for `e` are not present: f"):
        container.build()


def test_falsy_artifact_counts_as_missing_for_required_dependents():
    container = Container(
        producers=[
            static_producer("count", value=0),
            static_producer("report", requires=("count",)),
        ]
    )

    with pytest.raises(MissingDependencyError, match="`report` are not present: count"):
        container.build()


def test_producers_only_see_declared_dependencies():
    report = static_producer("report", requires=("db",))
    container = Container(
        producers=[static_producer("db"), static_producer("cache"), report]
    )

    container.build()

    assert report.received == [{"db": "db"}]


def test_producers_receive_context_and_their_configuration_slice():
    seen = []

    class ProbeProducer(Producer):
        provides = "probe"

        def enabled(self):
            return True

        def build(self):
            seen.append((self.context, self.raw_config))
            return "probe"

    context = AppContext(name="Probe")
    make_container(
        [ProbeProducer, static_producer("other")],
        context=context,
        configuration={"probe": {"depth": 3}, "other": {"depth": 1}},
    )

    assert seen == [(context, {"depth": 3})]


def test_missing_configuration_slice_is_empty():
    seen = []

    class ProbeProducer(Producer):
        provides = "probe"

        def enabled(self):
            return True

        def build(self):
            seen.append(self.raw_config)
            return "probe"

    make_container([ProbeProducer])

    assert seen == [{}]


def test_lifecycle_runs_validation_then_requirements_then_build():
    calls = []

    class LifecycleProducer(Producer):
        provides = "lifecycle"

        def enabled(self):
            calls.append("enabled")
            return True

        def validate(self):
            calls.append("validate")
            return super().validate()

        def load_requirements(self):
            calls.append("load_requirements")

        def build(self):
            calls.append("build")
            return "built"

    make_container([LifecycleProducer])

    assert calls == ["enabled", "validate", "load_requirements", "build"]


def test_disabled_producer_is_neither_validated_nor_built():
    calls = []

    class DisabledProducer(Producer):
        provides = "disabled"

        def validate(self):
            calls.append("validate")
            return super().validate()

        def load_requirements(self):
            calls.append("load_requirements")

        def build(self):
            calls.append("build")

    container = make_container([DisabledProducer])

    assert calls == []
    assert container.to_map() == {"disabled": None}


def test_invalid_configuration_aborts_build(configuration):
    configuration["logger"] = {"enabled": True, "level": "LOUD"}
    timing_builds = []

    class CountingTimingProducer(TimingProducer):
        def build(self):
            timing_builds.append(self)
            return super().build()

    container = Container(
        context=AppContext(name="Test"),
        configuration=configuration,
        producers=[LoggerProducer, CountingTimingProducer],
    )

    with pytest.raises(ConfigurationValidationError, match="Configuration for `logger` is invalid: level"):
        container.build()

    assert timing_builds == []
    assert container.state is ContainerState.FAILED


def test_producer_errors_propagate_unmodified():
    class BrokenProducer(Producer):
        provides = "broken"

        def enabled(self):
            return True

        def build(self):
            raise RuntimeError("connection refused")

    container = Container(producers=[BrokenProducer])

    with pytest.raises(RuntimeError, match="connection refused"):
        container.build()


def test_dependency_cycle_aborts_build():
    container = Container(
        producers=[static_producer("a", requires=("b",)), static_producer("b", requires=("a",))]
    )

    with pytest.raises(CyclicDependencyError, match="a -> b -> a"):
        container.build()

    assert container.state is ContainerState.FAILED


def test_failed_build_cannot_be_retried(container, configuration):
    configuration["timing"] = {"enabled": False}

    with pytest.raises(MissingDependencyError):
        container.build()

    assert container.is_built
    with pytest.raises(DuplicateBuildError):
        container.build()
    with pytest.raises(RegistrationAfterBuildError):
        container.register(static_producer("late"))


def test_artifacts_of_failed_build_are_not_available(container, configuration):
    configuration["timing"] = {"enabled": False}

    with pytest.raises(MissingDependencyError):
        container.build()

    with pytest.raises(IncompleteBuildError, match="build failed"):
        container.fetch("logger")
    with pytest.raises(IncompleteBuildError, match="build failed"):
        container.to_map()


def test_fetch_before_build_raises(container):
    with pytest.raises(IncompleteBuildError, match="has not been built"):
        container.fetch("logger")


def test_fetch_unknown_producer_raises(container):
    container.build()

    with pytest.raises(UnknownProducerError, match="Unknown producer 'database'"):
        container.fetch("database")


def test_fetch_disabled_producer_raises(container, configuration):
    configuration["hype_person"] = {"enabled": False}
    container.build()

    with pytest.raises(UnknownProducerError, match=r"'hype_person': the producer built no artifact \(disabled"):
        container["hype_person"]


def test_fetch_producer_that_built_none_raises():
    class NothingProducer(Producer):
        provides = "nothing"

        def enabled(self):
            return True

        def build(self):
            return None

    container = make_container([NothingProducer])

    assert container.to_map() == {"nothing": None}
    with pytest.raises(UnknownProducerError, match=r"built no artifact \(disabled or returned None\)"):
        container.fetch("nothing")


def test_to_map_includes_disabled_producers_and_is_read_only(container, configuration):
    configuration["hype_person"] = {"enabled": False}
    container.build()

    artifacts = container.to_map()
    assert set(artifacts) == {"logger", "flags", "timing", "hype_person"}
    assert artifacts["hype_person"] is None
    with pytest.raises(TypeError):
        artifacts["intruder"] = object()


def test_building_closes_the_registry():
    registry = ProducerRegistry([static_producer("a")])
    container = Container(registry=registry)

    container.build()

    assert registry.closed
    with pytest.raises(RegistrationAfterBuildError):
        registry.register(static_producer("b"))


def test_containers_with_separate_registries_coexist():
    first = make_container([static_producer("a", value="first")])
    second = make_container([static_producer("a", value="second"), static_producer("b")])

    assert first["a"] == "first"
    assert second["a"] == "second"
    assert "b" not in first


def test_build_is_logged(container, caplog):
    with caplog.at_level(logging.INFO, logger="assembly.container"):
        container.build()

    assert "Building 4 producers in order: ['logger', 'hype_person', 'timing', 'flags']" in caplog.text
    assert "Built 4 of 4 producers" in caplog.text
