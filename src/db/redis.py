import redis.asyncio as aioredis
from src.config import Config

# Revoked token ids are written here by the account service on logout
token_blocklist = aioredis.from_url(Config.REDIS_URL)


async def token_in_blocklist(jti: str) -> bool:
    jti = await token_blocklist.get(jti)
    return jti is not None
