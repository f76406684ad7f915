MAX_MESSAGE_LENGTH = 1000
MESSAGE_HISTORY_LIMIT = 100

# Websocket event type pushed to huddle members
HUDDLE_MESSAGE_EVENT = 'huddle.message'
HUDDLE_MESSAGE_DELETED_EVENT = 'huddle.message_deleted'


def huddle_group_name(huddle_id):
    return f"huddle_{huddle_id}"
