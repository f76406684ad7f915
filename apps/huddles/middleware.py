import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from urllib.parse import parse_qs
from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
import logging

logger = logging.getLogger(__name__)
User = get_user_model()


class JWTAuthMiddleware(BaseMiddleware):
    """Authenticate websocket connections from a ?token=<access jwt> query parameter."""

    async def __call__(self, scope, receive, send):
        query_string = scope.get("query_string", b"").decode("utf-8")
        query_params = parse_qs(query_string)
        token = query_params.get("token", [None])[0]

        if not token:
            logger.warning("WebSocket authentication failed: no token provided")
            await send({"type": "websocket.close"})
            return

        user = await self.get_user_from_token(token)
        if not user:
            logger.warning("WebSocket authentication failed: invalid token")
            await send({"type": "websocket.close"})
            return

        scope["user"] = user
        return await super().__call__(scope, receive, send)

    @database_sync_to_async
    def get_user_from_token(self, token):
        """
        Decode the access token and return the active user it belongs to.
        """
        signing_key = settings.SIMPLE_JWT.get("SIGNING_KEY", settings.SECRET_KEY)
        algorithm = settings.SIMPLE_JWT.get("ALGORITHM", "HS256")
        try:
            payload = jwt.decode(token, signing_key, algorithms=[algorithm])
            if payload.get("token_type") != "access":
                logger.error("JWT error: not an access token")
                return None
            return User.objects.get(id=payload.get("user_id"), is_active=True)
        except jwt.ExpiredSignatureError:
            logger.error("JWT error: token has expired")
        except jwt.InvalidTokenError:
            logger.error("JWT error: invalid token")
        except User.DoesNotExist:
            logger.error("JWT error: user not found")

        return None


def JWTAuthMiddlewareStack(inner):
    return JWTAuthMiddleware(inner)
