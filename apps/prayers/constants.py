MAX_PRAYER_LENGTH = 500
PRAYER_FEED_LIMIT = 100

# Rolling-window posting limit per author
PRAYER_POSTS_PER_WINDOW = 5
PRAYER_POST_WINDOW_MINUTES = 60
PRAYER_RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait before posting another prayer."
