from datetime import timedelta

from cardwise.domain.scheduling import Rating, StudyMode
from cardwise.interface.views import Complete, Dashboard, Setup, Studying, view_after


def test_views_follow_session_lifecycle(manager, repo, now):
    session = manager.start_session(["a", "b"], StudyMode.DAILY, now)

    view = view_after(session, manager.get_progress(), repo.get("a"))
    assert isinstance(view, Studying)
    assert view.card.id == "a"
    assert view.position == "1/2"

    manager.record_review(session, "a", Rating.GOOD, now)
    manager.record_review(session, "b", Rating.GOOD, now)
    entry = manager.end_session(session, now + timedelta(minutes=1))

    view = view_after(session, manager.get_progress(), entry=entry)
    assert isinstance(view, Complete)
    assert view.entry.cards_reviewed == 2


def test_abandoned_session_returns_to_dashboard(manager, now):
    session = manager.start_session(["a"], StudyMode.DAILY, now)
    manager.abandon_session(session, now)

    view = view_after(session, manager.get_progress())
    assert isinstance(view, Dashboard)
    assert view.progress.sessions_completed == 0


def test_setup_offers_every_mode():
    assert set(Setup().modes) == set(StudyMode)
