# Group Type Choices ------------------------------------------------------------------------------------
HOBBY = 'HOBBY'
SUPPORT = 'SUPPORT'
SPIRITUAL = 'SPIRITUAL'
PROFESSIONAL = 'PROFESSIONAL'
SOCIAL = 'SOCIAL'
OTHER = 'OTHER'
GROUP_TYPE_CHOICES = [
    (HOBBY, 'Hobby'),
    (SUPPORT, 'Support'),
    (SPIRITUAL, 'Spiritual'),
    (PROFESSIONAL, 'Professional'),
    (SOCIAL, 'Social'),
    (OTHER, 'Other'),
]


# Group Category Choices --------------------------------------------------------------------------------
CIRCLE = 'CIRCLE'
HUDDLE = 'HUDDLE'
GROUP_CATEGORY_CHOICES = [
    (CIRCLE, 'Circle'),
    (HUDDLE, 'Huddle'),
]


# Group Status Choices ----------------------------------------------------------------------------------
STATUS_ACTIVE = 'ACTIVE'
STATUS_PAUSED = 'PAUSED'
STATUS_ARCHIVED = 'ARCHIVED'
GROUP_STATUS_CHOICES = [
    (STATUS_ACTIVE, 'Active'),
    (STATUS_PAUSED, 'Paused'),
    (STATUS_ARCHIVED, 'Archived'),
]


# Membership Role Choices -------------------------------------------------------------------------------
ROLE_MEMBER = 'MEMBER'
ROLE_LEADER = 'LEADER'
ROLE_CREATOR = 'CREATOR'
MEMBERSHIP_ROLE_CHOICES = [
    (ROLE_MEMBER, 'Member'),
    (ROLE_LEADER, 'Leader'),
    (ROLE_CREATOR, 'Creator'),
]


# Membership Status Choices -----------------------------------------------------------------------------
MEMBER_PENDING = 'PENDING'
MEMBER_ACTIVE = 'ACTIVE'
MEMBER_INACTIVE = 'INACTIVE'
MEMBER_REMOVED = 'REMOVED'
MEMBERSHIP_STATUS_CHOICES = [
    (MEMBER_PENDING, 'Pending'),
    (MEMBER_ACTIVE, 'Active'),
    (MEMBER_INACTIVE, 'Inactive'),
    (MEMBER_REMOVED, 'Removed'),
]


# Size Limits -------------------------------------------------------------------------------------------
MIN_GROUP_SIZE = 2
MAX_GROUP_SIZE = 100
HUDDLE_MIN_SIZE = 3
HUDDLE_MAX_SIZE = 6
DEFAULT_GROUP_SEARCH_LIMIT = 50
