from datetime import date

import pytest

from app.core.config import Settings
from app.core.exceptions import UpstreamUnavailableError
from app.models.batch import BatchStatus, EnrollmentStatus
from app.models.student import StudentStatus
from app.schemas.batch import BatchSpecification, CandidateStatus
from app.schemas.schedule import DateRange, WeeklySchedule
from app.services.candidate_suggestions import CandidateSuggestionEngine
from app.services.curriculum_catalog import CurriculumCatalog
from app.services.data_sources import EnrollmentRecord, FeeSummary, StudentRecord

TODAY = date(2025, 1, 2)
JANUARY = DateRange(start=date(2025, 1, 6), end=date(2025, 2, 28))


def timed(*days, start="09:00", end="11:00"):
    return WeeklySchedule({day: {"startTime": start, "endTime": end} for day in days})


def make_spec(**overrides):
    payload = {
        "batch_id": "draft-1",
        "title": "Photoshop Morning",
        "curriculum": ["Photoshop"],
        "schedule": timed("Mon", "Wed", "Fri"),
        "date_range": JANUARY,
    }
    payload.update(overrides)
    return BatchSpecification(**payload)


def make_engine(sources, **settings_overrides):
    catalog = CurriculumCatalog({"Photoshop": 23, "Illustrator": 16, "Maya": 92})
    return CandidateSuggestionEngine(
        students=sources,
        enrollments=sources,
        billing=sources,
        orientation=sources,
        catalog=catalog,
        settings=Settings(**settings_overrides),
    )


def student(student_id, name=None, interest=("Photoshop",), schedule=None, status=StudentStatus.active):
    return StudentRecord(
        student_id=student_id,
        name=name or student_id.title(),
        email=f"{student_id}@example.com",
        status=status,
        curriculum_interest=tuple(interest),
        schedule=schedule,
    )


def enrollment(student_id, batch_id, schedule, **overrides):
    values = {
        "student_id": student_id,
        "batch_id": batch_id,
        "batch_title": f"Batch {batch_id}",
        "date_range": DateRange(start=date(2025, 1, 1), end=date(2025, 3, 31)),
        "schedule": schedule,
    }
    values.update(overrides)
    return EnrollmentRecord(**values)


def ready(sources, *student_ids):
    sources.accept_orientation(*student_ids)
    sources.clear_fees(*student_ids)


def by_id(report):
    return {item.student_id: item for item in report.candidates}


def test_student_with_no_blockers_is_available(fake_sources):
    fake_sources.students = [student("asha", schedule=timed("Mon", "Wed"))]
    ready(fake_sources, "asha")

    report = make_engine(fake_sources).suggest(make_spec(), today=TODAY)

    result = by_id(report)["asha"]
    assert result.status == CandidateStatus.available
    assert result.status_message == "Available for enrollment"
    assert result.flags.conflicting_batches == []


def test_missing_orientation_outranks_every_other_signal(fake_sources):
    fake_sources.students = [student("ravi", schedule=timed("Thu", "Sat"))]
    fake_sources.fees["ravi"] = FeeSummary(overdue_amount=1500.0, overdue_count=1)
    fake_sources.enrollments = [enrollment("ravi", "b-1", timed("Mon"))]

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["ravi"]

    assert result.status == CandidateStatus.no_orientation
    assert result.status_message == "Orientation not accepted"
    assert result.flags.has_overdue_fees


def test_declined_or_unknown_language_orientation_does_not_count(fake_sources):
    fake_sources.students = [student("meera"), student("kiran")]
    fake_sources.clear_fees("meera", "kiran")
    fake_sources.orientation["meera"] = {"english": False}
    fake_sources.orientation["kiran"] = {"hindi": True}

    results = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))

    assert results["meera"].status == CandidateStatus.no_orientation
    assert results["kiran"].status == CandidateStatus.no_orientation


def test_gujarati_orientation_is_accepted(fake_sources):
    fake_sources.students = [student("nisha")]
    fake_sources.accept_orientation("nisha", language="gujarati")
    fake_sources.clear_fees("nisha")

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["nisha"]

    assert result.status == CandidateStatus.available


def test_overdue_fees_outrank_pending_fees_and_day_mismatch(fake_sources):
    fake_sources.students = [student("dev", schedule=timed("Thu", "Sat"))]
    fake_sources.accept_orientation("dev")
    fake_sources.fees["dev"] = FeeSummary(overdue_amount=1500.0, pending_amount=200.0, overdue_count=1, pending_count=1)

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["dev"]

    assert result.status == CandidateStatus.fees_overdue
    assert result.status_message == "Fees overdue (₹1500.00)"
    assert result.amounts.overdue == 1500.0
    assert result.amounts.pending == 200.0


def test_pending_fees_outrank_schedule_problems(fake_sources):
    fake_sources.students = [student("sara", schedule=timed("Thu"))]
    fake_sources.accept_orientation("sara")
    fake_sources.fees["sara"] = FeeSummary(pending_amount=750.5, pending_count=2)

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["sara"]

    assert result.status == CandidateStatus.pending_fees
    assert result.status_message == "Fees pending (₹750.50)"
    assert result.flags.has_pending_fees


def test_day_mismatch_when_preferred_days_never_meet(fake_sources):
    fake_sources.students = [student("tara", schedule=WeeklySchedule(["Thu", "Sat"]))]
    ready(fake_sources, "tara")
    fake_sources.enrollments = [enrollment("tara", "b-1", timed("Mon"))]

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["tara"]

    assert result.status == CandidateStatus.day_mismatch
    assert result.status_message == (
        "Day mismatch - student prefers Thursday, Saturday, batch meets Monday, Wednesday, Friday"
    )


def test_no_preferred_schedule_never_mismatches(fake_sources):
    fake_sources.students = [student("umar", schedule=None), student("veda", schedule=WeeklySchedule({}))]
    ready(fake_sources, "umar", "veda")

    results = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))

    assert results["umar"].status == CandidateStatus.available
    assert results["veda"].status == CandidateStatus.available


def test_overlapping_enrollment_window_is_a_time_conflict(fake_sources):
    fake_sources.students = [student("arjun", schedule=timed("Mon", "Wed"))]
    ready(fake_sources, "arjun")
    fake_sources.enrollments = [
        enrollment("arjun", "b-7", timed("Wed", start="10:00", end="12:00")),
        enrollment("arjun", "b-8", timed("Tue")),
    ]

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["arjun"]

    assert result.status == CandidateStatus.time_conflict
    assert result.status_message == "Time conflict - 1 batch(es): Batch b-7"
    assert [item.batch_id for item in result.flags.conflicting_batches] == ["b-7"]
    assert [window.day.value for window in result.flags.conflicting_windows] == ["Wednesday"]


def test_back_to_back_windows_do_not_conflict(fake_sources):
    fake_sources.students = [student("bina")]
    ready(fake_sources, "bina")
    fake_sources.enrollments = [enrollment("bina", "b-2", timed("Mon", start="11:00", end="13:00"))]

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["bina"]

    assert result.status == CandidateStatus.available


def test_enrollment_without_schedule_marks_student_busy(fake_sources):
    fake_sources.students = [student("chirag")]
    ready(fake_sources, "chirag")
    fake_sources.enrollments = [enrollment("chirag", "b-3", None), enrollment("chirag", "b-4", WeeklySchedule({}))]

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["chirag"]

    assert result.status == CandidateStatus.busy
    assert result.status_message == "Busy - 2 batch(es)"
    assert {item.batch_id for item in result.flags.conflicting_batches} == {"b-3", "b-4"}


def test_inactive_and_self_enrollments_are_ignored(fake_sources):
    fake_sources.students = [student("divya")]
    ready(fake_sources, "divya")
    fake_sources.enrollments = [
        enrollment("divya", "b-ended", timed("Mon"), batch_status=BatchStatus.ended),
        enrollment("divya", "b-done", timed("Mon"), enrollment_status=EnrollmentStatus.completed),
        enrollment("divya", "draft-1", timed("Mon")),
        enrollment(
            "divya",
            "b-old",
            timed("Mon"),
            date_range=DateRange(start=date(2024, 6, 1), end=date(2024, 12, 31)),
        ),
    ]

    result = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["divya"]

    assert result.status == CandidateStatus.available


def test_students_without_matching_interest_are_excluded(fake_sources):
    fake_sources.students = [
        student("esha", interest=("Maya",)),
        student("farhan", interest=("photoshop", "Maya")),
        student("gita", interest=()),
    ]
    ready(fake_sources, "esha", "farhan", "gita")

    report = make_engine(fake_sources).suggest(make_spec(), today=TODAY)

    assert [item.student_id for item in report.candidates] == ["farhan"]
    assert report.total_count == 1


def test_ranking_summary_and_name_ordering(fake_sources):
    fake_sources.students = [
        student("s1", name="zoya"),
        student("s2", name="Aman"),
        student("s3", name="bela", schedule=timed("Sun")),
        student("s4", name="Chetan"),
        student("s5", name="aman"),
    ]
    ready(fake_sources, "s1", "s2", "s3", "s5")
    fake_sources.fees["s4"] = FeeSummary(pending_amount=10.0, pending_count=1)
    fake_sources.accept_orientation("s4")
    fake_sources.orientation.pop("s1")

    report = make_engine(fake_sources).suggest(make_spec(), today=TODAY)

    assert [item.student_id for item in report.candidates] == ["s2", "s5", "s3", "s4", "s1"]
    assert report.summary[CandidateStatus.available] == 2
    assert report.summary[CandidateStatus.day_mismatch] == 1
    assert report.summary[CandidateStatus.pending_fees] == 1
    assert report.summary[CandidateStatus.no_orientation] == 1
    assert report.summary[CandidateStatus.busy] == 0
    assert sum(report.summary.values()) == report.total_count == 5


def test_suggestion_is_repeatable(fake_sources):
    fake_sources.students = [student("hari", schedule=timed("Mon")), student("isha")]
    ready(fake_sources, "hari")
    engine = make_engine(fake_sources)

    first = engine.suggest(make_spec(), today=TODAY)
    second = engine.suggest(make_spec(), today=TODAY)

    assert first == second


def test_missing_fee_data_follows_configured_policy(fake_sources):
    fake_sources.students = [student("jaya")]
    fake_sources.accept_orientation("jaya")

    lenient = by_id(make_engine(fake_sources).suggest(make_spec(), today=TODAY))["jaya"]
    strict = by_id(make_engine(fake_sources, missing_fee_status_policy="pending").suggest(make_spec(), today=TODAY))[
        "jaya"
    ]

    assert lenient.status == CandidateStatus.available
    assert strict.status == CandidateStatus.pending_fees


def test_student_pool_defaults_to_active_and_can_be_widened(fake_sources):
    fake_sources.students = [student("kabir"), student("lata", status=StudentStatus.active_plus)]
    ready(fake_sources, "kabir", "lata")
    engine = make_engine(fake_sources)

    default_pool = engine.suggest(make_spec(), today=TODAY)
    wider_pool = engine.suggest(
        make_spec(student_statuses=[StudentStatus.active, StudentStatus.active_plus]), today=TODAY
    )

    assert [item.student_id for item in default_pool.candidates] == ["kabir"]
    assert {item.student_id for item in wider_pool.candidates} == {"kabir", "lata"}


def test_each_registry_is_read_once_per_suggestion(fake_sources):
    fake_sources.students = [student(f"s{index}") for index in range(25)]

    make_engine(fake_sources).suggest(make_spec(), today=TODAY)

    assert fake_sources.calls == {
        "list_students": 1,
        "enrollments_for_students": 1,
        "fee_summaries": 1,
        "orientation_acceptance": 1,
    }


def test_no_interested_students_skips_the_remaining_reads(fake_sources):
    fake_sources.students = [student("mohan", interest=("Maya",))]

    report = make_engine(fake_sources).suggest(make_spec(), today=TODAY)

    assert report.candidates == []
    assert fake_sources.calls == {"list_students": 1}


@pytest.mark.parametrize(
    ("failing", "source"),
    [
        ("list_students", "student_directory"),
        ("enrollments_for_students", "enrollment_registry"),
        ("fee_summaries", "billing_ledger"),
        ("orientation_acceptance", "orientation_registry"),
    ],
)
def test_registry_failure_aborts_without_partial_results(fake_sources, failing, source):
    fake_sources.students = [student("nina")]
    fake_sources.failing.add(failing)

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        make_engine(fake_sources).suggest(make_spec(), today=TODAY)

    assert exc_info.value.source == source
    assert exc_info.value.details["reason"] == f"{failing} is down"


def test_batch_without_curriculum_is_rejected():
    with pytest.raises(ValueError, match="curriculum"):
        make_spec(curriculum=["  ", ""])
