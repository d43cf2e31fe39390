import os
from dotenv import load_dotenv

# Settings come from token.env (or the process environment)
load_dotenv(dotenv_path='token.env')

TOKEN = os.getenv('DISCORD_TOKEN')
GUILD_ID = os.getenv('GUILD_ID')

SAVE_FOLDER = os.getenv('SAVE_FOLDER', 'data')
ACTORS_FOLDER = os.path.join(SAVE_FOLDER, 'actors')
SCENES_FOLDER = os.path.join(SAVE_FOLDER, 'scenes')
CARDS_FOLDER = os.path.join(SAVE_FOLDER, 'cards')

DEFAULT_ROLL_MODE = os.getenv('DEFAULT_ROLL_MODE', 'roll')
CARD_TEMPLATE = 'item-card'

__all__ = [
    'TOKEN', 'GUILD_ID', 'SAVE_FOLDER', 'ACTORS_FOLDER', 'SCENES_FOLDER', 'CARDS_FOLDER',
    'DEFAULT_ROLL_MODE', 'CARD_TEMPLATE',
]
