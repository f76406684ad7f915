# apps/core/api_exceptions.py
from rest_framework.exceptions import APIException


class OnboardingRequired(APIException):
    status_code = 422
    default_detail = "Please complete onboarding first"
    default_code = "onboarding_required"

    def __init__(self, detail=None, code=None):
        super().__init__(detail, code)
        self.redirect = "/onboarding"


class PersonProfileMissing(APIException):
    status_code = 404
    default_detail = "Person profile not found. Please complete signup."
    default_code = "person_missing"


class ProfileNotAccessible(APIException):
    status_code = 403
    default_detail = "This profile is not accessible"
    default_code = "profile_not_accessible"


class GroupFull(APIException):
    status_code = 400
    default_detail = "Group is full"
    default_code = "group_full"


class GroupNotJoinable(APIException):
    status_code = 400
    default_detail = "This gathering is not accepting members"
    default_code = "group_not_joinable"


class AlreadyMember(APIException):
    status_code = 400
    default_detail = "Already a member"
    default_code = "already_member"


class NotAMember(APIException):
    status_code = 400
    default_detail = "Not a member"
    default_code = "not_a_member"


class Conflict(APIException):
    status_code = 409
    default_detail = "Request conflicts with the current state"
    default_code = "conflict"


class AlreadyPrayed(Conflict):
    default_detail = "You have already prayed for this prayer"
    default_code = "already_prayed"


class Gone(APIException):
    status_code = 410
    default_detail = "This resource has been deleted"
    default_code = "gone"


class PrayerGone(Gone):
    default_detail = "This prayer has been deleted"
    default_code = "prayer_gone"
