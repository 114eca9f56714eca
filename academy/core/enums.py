"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    ADMIN = "admin"
    TRAINER = "trainer"
    TRAINEE = "trainee"


class LevelEnum(StrEnum):
    """Trainee skill tiers, declared in ascending order."""

    LEVEL1 = "Level1"
    LEVEL2 = "Level2"
    LEVEL3 = "Level3"
    LEVEL4 = "Level4"
    ADULT = "Adult"
    DREAM_TEAM = "DreamTeam"


class ScheduleStatusEnum(StrEnum):
    """Trainer schedule status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    ATTENDED = "attended"
    ABSENT = "absent"
    APOLOGIZED = "apologized"


class AttendanceEnum(StrEnum):
    """Attendance recorded by trainer after a session."""

    PRESENT = "present"
    ABSENT = "absent"


class SortDirectionEnum(StrEnum):
    """Sort direction for booking projections."""

    ASC = "asc"
    DESC = "desc"


class BookingConflictPolicyEnum(StrEnum):
    """How booking creation treats an already taken trainer/day/time."""

    ALLOW = "allow"
    UNIQUE = "unique"
    CAPACITY = "capacity"


class CapabilityEnum(StrEnum):
    """Operations gated by role."""

    BOOKING_CREATE_OWN = "booking.create.own"
    BOOKING_CREATE_ON_BEHALF = "booking.create.on_behalf"
    BOOKING_CREATE_ANY = "booking.create.any"
    BOOKING_UPDATE = "booking.update"
    BOOKING_RECORD_ATTENDANCE = "booking.attendance.record"
    BOOKING_DELETE = "booking.delete"
    BOOKING_VIEW_ALL = "booking.view.all"
    SCHEDULE_MANAGE_OWN = "schedule.manage.own"
    SCHEDULE_MANAGE_ANY = "schedule.manage.any"
    PROFILE_MANAGE = "profile.manage"
    PROFILE_EDIT_SELF = "profile.edit.self"
    PROFILE_VIEW_DIRECTORY = "profile.view.directory"


class AuthFailureEnum(StrEnum):
    """Reasons an identity operation was rejected."""

    ALREADY_REGISTERED = "already_registered"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE = "inactive"
    INVALID_TOKEN = "invalid_token"
    GENERIC = "generic"
