import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect

from lms.services.errors import (
    AlreadyEnrolledError,
    CourseNotFoundError,
    ForbiddenError,
    InvalidProgressError,
    NotEnrolledError,
    UnauthenticatedError,
    UserNotFoundError,
)
from lms.utils.permissions import Caller, Role


def test_enroll_creates_enrollment_with_zero_progress(service, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course()

    outcome = service.enroll(caller, course_id)

    assert outcome.user_index_synced is True
    assert outcome.enrollment["userId"] == caller.user_id
    assert outcome.enrollment["courseId"] == course_id
    assert outcome.enrollment["progress"] == 0
    assert outcome.enrollment["enrolledAt"] == outcome.enrollment["updatedAt"]
    assert service.enrollments.exists(caller.user_id, course_id)


def test_enroll_adds_course_reference_to_user(service, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course()

    service.enroll(caller, course_id)

    user = service.users.find_by_id(caller.user_id)
    assert user["enrolledCourses"] == [course_id]


def test_second_enroll_fails_with_already_enrolled(service, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course()
    service.enroll(caller, course_id)

    with pytest.raises(AlreadyEnrolledError):
        service.enroll(caller, course_id)

    assert service.enrollments.col.count_documents({"userId": caller.user_id, "courseId": course_id}) == 1


def test_enroll_interleaved_past_existence_check_is_stopped_by_unique_index(
    service, make_user, make_course, monkeypatch: pytest.MonkeyPatch
) -> None:
    caller = make_user()
    course_id = make_course()
    # both requests see "not enrolled" before either one inserts
    monkeypatch.setattr(service.enrollments, "exists", lambda user_id, course_id: False)

    results = []
    for _ in range(2):
        try:
            service.enroll(caller, course_id)
            results.append("ok")
        except AlreadyEnrolledError:
            results.append("already")

    assert sorted(results) == ["already", "ok"]
    assert service.enrollments.col.count_documents({"userId": caller.user_id, "courseId": course_id}) == 1


def test_simultaneous_enrolls_yield_one_enrollment(
    service, make_user, make_course, monkeypatch: pytest.MonkeyPatch
) -> None:
    caller = make_user()
    course_id = make_course()
    both_checked = threading.Barrier(2, timeout=5)

    def exists_after_both_checked(user_id, course_id):
        both_checked.wait()
        return False

    monkeypatch.setattr(service.enrollments, "exists", exists_after_both_checked)

    def attempt():
        try:
            service.enroll(caller, course_id)
            return "ok"
        except AlreadyEnrolledError:
            return "already"

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(attempt) for _ in range(2)]
        results = [f.result() for f in futures]

    assert sorted(results) == ["already", "ok"]
    assert service.enrollments.col.count_documents({"userId": caller.user_id, "courseId": course_id}) == 1


def test_enroll_unknown_course_creates_nothing(service, make_user) -> None:
    caller = make_user()

    with pytest.raises(CourseNotFoundError):
        service.enroll(caller, "64b7f0c2a1b2c3d4e5f60718")

    with pytest.raises(CourseNotFoundError):
        service.enroll(caller, "not-an-object-id")

    assert service.enrollments.list_by_user(caller.user_id) == []


def test_enroll_requires_resolvable_caller(service, make_course) -> None:
    course_id = make_course()

    with pytest.raises(UnauthenticatedError):
        service.enroll(None, course_id)

    with pytest.raises(UnauthenticatedError):
        service.enroll(Caller("64b7f0c2a1b2c3d4e5f60718", Role.STUDENT), course_id)


def test_admin_cannot_enroll(service, make_user, make_course) -> None:
    admin = make_user("admin@example.edu", Role.ADMIN)
    course_id = make_course()

    with pytest.raises(ForbiddenError):
        service.enroll(admin, course_id)

    assert service.enrollments.list_by_user(admin.user_id) == []


def test_enroll_reports_unsynced_user_index_when_second_write_fails(
    service, make_user, make_course, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    caller = make_user()
    course_id = make_course()

    def fail(user_id, course_id):
        raise AutoReconnect("connection reset")

    monkeypatch.setattr(service.users, "add_course_reference", fail)

    with caplog.at_level(logging.WARNING, logger="lms.services.enrollment_service"):
        outcome = service.enroll(caller, course_id)

    assert outcome.user_index_synced is False
    assert "connection reset" in outcome.user_index_error
    assert "[enroll]" in caplog.text
    # the ledger is the source of truth: enrolled, even though the user index lags
    assert service.enrollments.exists(caller.user_id, course_id)
    assert service.users.find_by_id(caller.user_id)["enrolledCourses"] == []
    with pytest.raises(AlreadyEnrolledError):
        service.enroll(caller, course_id)


def test_resync_rebuilds_user_index_from_ledger(
    service, make_user, make_course, monkeypatch: pytest.MonkeyPatch
) -> None:
    student = make_user()
    admin = make_user("admin@example.edu", Role.ADMIN)
    first, second = make_course("Course A"), make_course("Course B")
    service.enroll(student, first)

    def fail(user_id, course_id):
        raise AutoReconnect("connection reset")

    monkeypatch.setattr(service.users, "add_course_reference", fail)
    service.enroll(student, second)
    monkeypatch.undo()

    synced = service.resync_course_index(admin, student.user_id)

    assert sorted(synced) == sorted([first, second])
    assert sorted(service.users.find_by_id(student.user_id)["enrolledCourses"]) == sorted([first, second])


def test_resync_keeps_reference_added_by_enroll_during_repair(
    service, make_user, make_course, monkeypatch: pytest.MonkeyPatch
) -> None:
    student = make_user()
    admin = make_user("admin@example.edu", Role.ADMIN)
    first, second = make_course("Course A"), make_course("Course B")
    service.enroll(student, first)
    read_ledger = service.enrollments.list_by_user

    def read_then_enroll(user_id):
        snapshot = read_ledger(user_id)
        # lands after the resync read and before its write
        service.enroll(student, second)
        return snapshot

    monkeypatch.setattr(service.enrollments, "list_by_user", read_then_enroll)

    service.resync_course_index(admin, student.user_id)

    assert sorted(service.users.find_by_id(student.user_id)["enrolledCourses"]) == sorted([first, second])


def test_resync_never_removes_references(service, make_user, make_course) -> None:
    student = make_user()
    admin = make_user("admin@example.edu", Role.ADMIN)
    course_id = make_course()
    service.users.add_course_reference(student.user_id, course_id)

    synced = service.resync_course_index(admin, student.user_id)

    assert synced == [course_id]


def test_resync_is_admin_only_and_needs_existing_user(service, make_user) -> None:
    student = make_user()
    admin = make_user("admin@example.edu", Role.ADMIN)

    with pytest.raises(ForbiddenError):
        service.resync_course_index(student, student.user_id)

    with pytest.raises(UserNotFoundError):
        service.resync_course_index(admin, "64b7f0c2a1b2c3d4e5f60718")


def test_add_course_reference_is_idempotent(service, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course()

    service.users.add_course_reference(caller.user_id, course_id)
    service.users.add_course_reference(caller.user_id, course_id)

    assert service.users.find_by_id(caller.user_id)["enrolledCourses"] == [course_id]


@pytest.mark.parametrize("progress", [0, 1, 55, 99, 100])
def test_update_progress_stores_exact_value(service, make_user, make_course, progress: int) -> None:
    caller = make_user()
    course_id = make_course()
    service.enroll(caller, course_id)

    updated = service.update_progress(caller, course_id, progress)

    assert updated["progress"] == progress
    assert service.get_progress(caller, course_id)["progress"] == progress


@pytest.mark.parametrize("progress", [-1, 101, 1000, True])
def test_update_progress_rejects_out_of_range_without_writing(
    service, make_user, make_course, progress
) -> None:
    caller = make_user()
    course_id = make_course()
    service.enroll(caller, course_id)
    service.update_progress(caller, course_id, 40)

    with pytest.raises(InvalidProgressError):
        service.update_progress(caller, course_id, progress)

    assert service.get_progress(caller, course_id)["progress"] == 40


def test_ledger_rechecks_progress_range(service, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course()
    enrollment = service.enroll(caller, course_id).enrollment

    with pytest.raises(InvalidProgressError):
        service.enrollments.update_progress(enrollment["id"], 150)


def test_progress_can_move_backwards(service, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course()
    service.enroll(caller, course_id)

    service.update_progress(caller, course_id, 80)
    updated = service.update_progress(caller, course_id, 20)

    assert updated["progress"] == 20


def test_update_progress_without_enrollment_fails(service, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course()

    with pytest.raises(NotEnrolledError):
        service.update_progress(caller, course_id, 10)


def test_update_progress_refreshes_updated_at_only(service, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course()
    created = service.enroll(caller, course_id).enrollment

    updated = service.update_progress(caller, course_id, 30)

    assert updated["enrolledAt"] == created["enrolledAt"]
    assert updated["updatedAt"] >= created["updatedAt"]


def test_list_enrolled_courses_drops_deleted_course(
    service, courses, make_user, make_course, caplog: pytest.LogCaptureFixture
) -> None:
    caller = make_user()
    course_a = make_course("Course A")
    course_b = make_course("Course B")
    service.enroll(caller, course_a)
    service.enroll(caller, course_b)
    courses.delete(course_b)

    with caplog.at_level(logging.INFO, logger="lms.services.enrollment_service"):
        listed = service.list_enrolled_courses(caller)

    assert [c["id"] for c in listed] == [course_a]
    assert "[enrollments.list]" in caplog.text
    assert course_b in caplog.text


def test_admin_can_list_enrolled_courses(service, make_user) -> None:
    admin = make_user("admin@example.edu", Role.ADMIN)

    assert service.list_enrolled_courses(admin) == []


def test_enroll_then_progress_scenario(service, make_user, make_course) -> None:
    u1 = make_user("u1@example.edu")
    c1 = make_course("Course One", level="Beginner", price=49.99)

    service.enroll(u1, c1)
    assert service.get_progress(u1, c1)["progress"] == 0

    service.update_progress(u1, c1, 55)

    listed = service.list_enrolled_courses(u1)
    assert [c["id"] for c in listed] == [c1]
    assert listed[0]["price"] == 49.99
    assert listed[0]["level"] == "Beginner"
    assert service.enrollments.find_by_user_and_course(u1.user_id, c1)["progress"] == 55


def test_course_recreated_with_same_id_reappears_in_list(service, courses, db, make_user, make_course) -> None:
    caller = make_user()
    course_id = make_course("Course A")
    service.enroll(caller, course_id)
    courses.delete(course_id)
    assert service.list_enrolled_courses(caller) == []

    db["courses"].insert_one({"_id": ObjectId(course_id), "title": "Something else", "level": "Advanced", "price": 5.0})

    listed = service.list_enrolled_courses(caller)
    assert [c["title"] for c in listed] == ["Something else"]
