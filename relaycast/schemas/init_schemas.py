from relaycast.app_config import get_app_environ_config
from relaycast.schemas.init import init_beanie_odm
from relaycast.shared.storage.mongo import get_mongo_client


async def init_schema():
    mongo_client = get_mongo_client()
    db = mongo_client[get_app_environ_config().MONGO_DATABASE]
    await init_beanie_odm(db)


if __name__ == "__main__":
    import asyncio

    asyncio.run(init_schema())
