"""Tests for the unit of work and the message bus."""

from dataclasses import dataclass

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import Aggregate, DomainEvent


@dataclass(eq=False)
class Counter(Aggregate):
    value: int = 0

    def bump(self):
        self.value += 1
        self.add_event(Bumped(aggregate_id=self.id))


@dataclass
class Bumped(DomainEvent):
    pass


@pytest.fixture
def bus():
    return MessageBus()


@pytest.mark.django_db
def test_events_are_published_after_commit(bus, django_capture_on_commit_callbacks):
    received = []
    bus.register_event_handler(Bumped, received.append)
    counter = Counter()
    counter.bump()

    with django_capture_on_commit_callbacks(execute=True):
        with DjangoUnitOfWork(bus=bus) as uow:
            uow.collect_events(counter)
            assert counter.events == []
            assert len(uow.pending_events) == 1
            assert received == []

    assert [event.aggregate_id for event in received] == [counter.id]


@pytest.mark.django_db
def test_rollback_drops_events(bus, django_capture_on_commit_callbacks):
    received = []
    bus.register_event_handler(Bumped, received.append)
    counter = Counter()
    counter.bump()

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(RuntimeError):
            with DjangoUnitOfWork(bus=bus) as uow:
                uow.collect_events(counter)
                raise RuntimeError("boom")

    assert callbacks == []
    assert received == []


def test_failing_handler_does_not_stop_others(bus):
    received = []

    def broken(event):
        raise ValueError("consumer down")

    bus.register_event_handler(Bumped, broken)
    bus.register_event_handler(Bumped, received.append)
    bus.register_event_handler(Bumped, received.append)

    bus.publish_events([Bumped()])

    assert len(received) == 1
    assert bus.handlers_for(Bumped)[0] is broken


def test_aggregates_compare_by_identity():
    first = Counter()
    copy = Counter(id=first.id, value=5)

    assert first == copy
    assert first != Counter()
    assert len({first, copy}) == 1
    assert Bumped().to_dict()["event_type"] == "Bumped"
