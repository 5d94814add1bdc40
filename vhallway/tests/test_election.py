import asyncio
import random

import pytest

from vhallway.services.election import (
    ElectionManager,
    ElectionStatus,
    WinningTopic,
    build_meeting_link,
)
from vhallway.services.errors import TopicSetMismatch
from vhallway.tests.fakes import InMemoryStore

MEMBERS = ["ada@x.org", "bob@x.org", "cy@x.org"]
TOPICS = {1: "Coffee", 2: "Books", 3: "Hiking"}
LINK_BASE = "https://meet.example/vh-"


async def _no_sleep(_delay):
    return None


def _manager(store, **kwargs):
    kwargs.setdefault("cohort_size", 3)
    kwargs.setdefault("winner_count", 2)
    kwargs.setdefault("meeting_link_base", LINK_BASE)
    return ElectionManager(store, sleep=_no_sleep, **kwargs)


def _finished_store():
    store = InMemoryStore(name="Friday hallway", attendees=MEMBERS, topics=TOPICS)
    store.set_cohorts(1, [MEMBERS])
    store.rank(1, "ada@x.org", {1: 0, 2: 1, 3: 2})
    store.rank(1, "bob@x.org", {1: 3, 2: 4, 3: 5})
    store.rank(1, "cy@x.org", {1: 8, 2: 7, 3: 6})
    for member in MEMBERS:
        store.vote(1, member)
    return store


@pytest.mark.anyio("asyncio")
async def test_start_meeting_partitions_attendees_once():
    attendees = [f"p{index}@x.org" for index in range(10)]
    store = InMemoryStore(attendees=attendees)
    manager = _manager(store, cohort_size=4, rng=random.Random(3))

    first = await manager.start_meeting(1, "p0@x.org")
    second = await manager.start_meeting(1, "p5@x.org")

    cohorts = list(store.memberships[store.groups[1]].values())
    assert sorted(len(cohort) for cohort in cohorts) == [2, 4, 4]
    assert set().union(*cohorts) == set(attendees)
    assert "p0@x.org" in first.peers
    assert "p5@x.org" in second.peers
    assert store.create_calls == 2
    assert store.commits == 1


@pytest.mark.anyio("asyncio")
async def test_concurrent_start_meeting_forms_cohorts_exactly_once():
    attendees = [f"p{index}@x.org" for index in range(8)]
    store = InMemoryStore(attendees=attendees)
    manager = _manager(store, cohort_size=2)

    assignments = await asyncio.gather(
        *(manager.start_meeting(1, attendee) for attendee in attendees)
    )

    cohorts = list(store.memberships[store.groups[1]].values())
    assert len(cohorts) == 4
    assert sum(len(cohort) for cohort in cohorts) == 8
    for attendee, assignment in zip(attendees, assignments):
        assert attendee in assignment.peers
        assert len(assignment.peers) == 2
    assert store.commits == 1


@pytest.mark.anyio("asyncio")
async def test_start_meeting_with_fewer_attendees_than_cohort_size():
    store = InMemoryStore(attendees=["a@x.org", "b@x.org"])
    manager = _manager(store, cohort_size=4)

    assignment = await manager.start_meeting(1, "a@x.org")

    assert assignment.peers == {"a@x.org", "b@x.org"}


@pytest.mark.anyio("asyncio")
async def test_start_meeting_without_attendees_returns_no_peers():
    store = InMemoryStore()
    manager = _manager(store)

    assignment = await manager.start_meeting(1, "late@x.org")

    assert assignment.peers is None
    assert store.groups[1]


@pytest.mark.anyio("asyncio")
async def test_failed_cohort_formation_releases_the_claim(monkeypatch):
    store = InMemoryStore(attendees=MEMBERS)
    manager = _manager(store)
    persist = store.persist_cohort_membership
    writes = []

    def _flaky_persist(group_id, cohort_index, participant):
        writes.append(participant)
        if len(writes) == 2:
            raise RuntimeError("store unavailable")
        persist(group_id, cohort_index, participant)

    monkeypatch.setattr(store, "persist_cohort_membership", _flaky_persist)

    with pytest.raises(RuntimeError):
        await manager.start_meeting(1, "ada@x.org")

    assert store.abandoned == 1
    assert store.commits == 0
    assert 1 not in store.groups

    assignment = await manager.start_meeting(1, "ada@x.org")

    assert assignment.peers == set(MEMBERS)
    assert store.commits == 1


@pytest.mark.anyio("asyncio")
async def test_election_without_cohort_reports_empty_cohort():
    store = InMemoryStore(attendees=MEMBERS, topics=TOPICS)
    result = await _manager(store).get_election_result(1, "ada@x.org")

    assert result.status is ElectionStatus.NO_COHORT
    assert result.status.value == "Empty cohort for user"
    assert result.winning_topics is None
    assert result.meeting_link is None


@pytest.mark.anyio("asyncio")
async def test_election_waits_for_every_member_to_vote():
    store = _finished_store()
    store.vote(1, "cy@x.org", False)

    result = await _manager(store).get_election_result(1, "ada@x.org")

    assert result.status.value == "Cohort voting not finished"
    assert result.winning_topics is None
    assert result.cohort_members is None
    assert result.meeting_link is None
    assert not result.finished


@pytest.mark.anyio("asyncio")
async def test_election_reports_membership_mismatch():
    store = _finished_store()
    store.attendees[1].discard("bob@x.org")

    result = await _manager(store).get_election_result(1, "ada@x.org")

    assert result.status is ElectionStatus.MEMBERSHIP_MISMATCH
    assert result.status.value == "Unexpected cohort email mismatch"
    assert result.meeting_link is None


@pytest.mark.anyio("asyncio")
async def test_election_finishes_with_borda_winners():
    store = _finished_store()

    result = await _manager(store).get_election_result(1, "bob@x.org")

    assert result.status.value == "Vote finished"
    assert result.finished
    # Borda totals are [2, 3, 4] for topics 1, 2, 3.
    assert result.winning_topics == [
        WinningTopic(topic_id=3, text="Hiking", borda_score=4),
        WinningTopic(topic_id=2, text="Books", borda_score=3),
    ]
    assert result.cohort_members == sorted(MEMBERS)
    assert result.meeting_link.startswith(LINK_BASE)


@pytest.mark.anyio("asyncio")
async def test_election_tie_goes_to_lower_topic_id():
    store = InMemoryStore(attendees=["a@x.org", "b@x.org"], topics=TOPICS)
    store.set_cohorts(1, [["a@x.org", "b@x.org"]])
    store.rank(1, "a@x.org", {1: 2, 2: 0, 3: 1})
    store.rank(1, "b@x.org", {1: 0, 2: 2, 3: 1})
    store.vote(1, "a@x.org")
    store.vote(1, "b@x.org")

    result = await _manager(store, winner_count=1).get_election_result(1, "a@x.org")

    assert [topic.topic_id for topic in result.winning_topics] == [1]


@pytest.mark.anyio("asyncio")
async def test_meeting_link_is_identical_for_every_member_and_call():
    store = _finished_store()
    manager = _manager(store)

    links = [
        (await manager.get_election_result(1, member)).meeting_link
        for member in MEMBERS + MEMBERS
    ]

    assert len(set(links)) == 1
    assert links[0].encode("utf-8") == links[-1].encode("utf-8")


@pytest.mark.anyio("asyncio")
async def test_topic_lists_that_differ_are_fatal():
    store = _finished_store()
    store.rank(1, "cy@x.org", {1: 0, 2: 1})

    with pytest.raises(TopicSetMismatch):
        await _manager(store).get_election_result(1, "ada@x.org")


def test_build_meeting_link_ignores_member_order_but_not_winner_order():
    topics = [WinningTopic(1, "Coffee", 4), WinningTopic(2, "Books", 3)]
    link = build_meeting_link(7, "Hallway", topics, ["b@x.org", "a@x.org"], LINK_BASE)

    assert link == build_meeting_link(7, "Hallway", topics, ["a@x.org", "b@x.org"], LINK_BASE)
    assert link != build_meeting_link(
        7, "Hallway", list(reversed(topics)), ["a@x.org", "b@x.org"], LINK_BASE
    )
    assert len(link) == len(LINK_BASE) + 64
