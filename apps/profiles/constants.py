# Location Privacy Choices ------------------------------------------------------------------------------
EXACT = 'EXACT'
APPROXIMATE = 'APPROXIMATE'
CITY_ONLY = 'CITY_ONLY'
HIDDEN = 'HIDDEN'
LOCATION_PRIVACY_CHOICES = [
    (EXACT, 'Exact location'),
    (APPROXIMATE, 'Approximate (~1 km)'),
    (CITY_ONLY, 'City only'),
    (HIDDEN, 'Hidden'),
]


# Onboarding Levels -------------------------------------------------------------------------------------
ONBOARDING_NONE = 0
ONBOARDING_COMPLETE = 1


# Proximity Defaults ------------------------------------------------------------------------------------
DEFAULT_PROXIMITY_RADIUS_KM = 5
DEFAULT_SEARCH_RADIUS_KM = 50
MAX_SEARCH_RADIUS_KM = 10000
DEFAULT_NEARBY_LIMIT = 20
MAX_NEARBY_LIMIT = 100


# Interests ---------------------------------------------------------------------------------------------
MIN_PROFICIENCY = 1
MAX_PROFICIENCY = 5
DEFAULT_PROFICIENCY = 3
MAX_INTERESTS = 20


# Default catalogue: {category: [interest names]}
DEFAULT_INTERESTS = {
    'Outdoor & Adventure': [
        'Hiking', 'Backpacking', 'Camping', 'Bushcraft', 'Mountaineering',
        'Fishing', 'Hunting', 'Sailing', 'Kayaking', 'Trail Running',
    ],
    'Craftsmanship, Trades & Maker': [
        'Woodworking', 'Carpentry', 'Metalworking', 'Blacksmithing', 'Leatherwork',
        'Automotive Repair', 'Home Renovation', 'Electronics',
    ],
    'Physicality, Combat & Team Sports': [
        'Weightlifting', 'Martial Arts', 'Boxing', 'Soccer', 'Basketball', 'Cycling',
    ],
    'Culinary, Fire & Food Systems': [
        'Grilling', 'Smoking Meats', 'Baking', 'Gardening', 'Homesteading',
    ],
    'Strategy, Mentorship & Leadership': [
        'Chess', 'Mentoring', 'Entrepreneurship', 'Public Speaking', 'Investing',
    ],
    'Faith, Formation & Relational Care': [
        'Bible Study', 'Prayer', 'Worship', 'Discipleship', 'Marriage Mentoring', 'Fatherhood',
    ],
    'Service, Civic & Community Action': [
        'Volunteering', 'Disaster Relief', 'Coaching Youth', 'Mission Trips',
    ],
    'Creative & Cultural': [
        'Music', 'Photography', 'Writing', 'Film', 'History',
    ],
}


# Compatibility Matching --------------------------------------------------------------------------------
PERSON_MATCH_WEIGHTS = {"interest": 0.5, "proximity": 0.3, "personality": 0.2}
GROUP_MATCH_WEIGHTS = {"interest": 0.4, "proximity": 0.3, "size": 0.2, "type": 0.1}
MATCH_PROXIMITY_RANGE_KM = 50          # proximity score falls linearly to 0 at this distance
MATCH_REASON_DISTANCE_KM = 10          # closer than this is worth mentioning
MATCH_CANDIDATE_LIMIT = 200
DEFAULT_MATCH_LIMIT = 20
MAX_MATCH_LIMIT = 100
DEFAULT_MATCH_MIN_SCORE = 0.3
DEFAULT_MATCH_RADIUS_KM = 50
MAX_SHARED_INTEREST_REASONS = 3

# Openness is rated 1..10
MIN_OPENNESS = 1
MAX_OPENNESS = 10
DEFAULT_OPENNESS = 5
SIMILAR_PERSONALITY_THRESHOLD = 0.7

# Group preference fallbacks
DEFAULT_PREFERRED_SIZE_MIN = 2
DEFAULT_PREFERRED_SIZE_MAX = 100
PARTIAL_PREFERENCE_SCORE = 0.5