"""Rename entity_server_settings.persistFilename to persistFilePath.

Version: 1.1
"""
import logging

logger = logging.getLogger(__name__)

version: float = 1.1
description: str = "persistFilename -> persistFilePath"

ENTITY_SERVER_SETTINGS_KEY = "entity_server_settings"
PERSIST_FILE_NAME_KEY_PATH = f"{ENTITY_SERVER_SETTINGS_KEY}.persistFilename"
PERSIST_FILE_PATH_KEY_PATH = f"{ENTITY_SERVER_SETTINGS_KEY}.persistFilePath"


def upgrade(ctx) -> bool:
    persist_file_name = ctx.store.get(PERSIST_FILE_NAME_KEY_PATH)
    if not isinstance(persist_file_name, str):
        return False

    logger.info("Migrating persistFilename to persistFilePath for entity-server settings")
    ctx.store.set(PERSIST_FILE_PATH_KEY_PATH, persist_file_name)
    ctx.store.remove(PERSIST_FILE_NAME_KEY_PATH)
    return True
