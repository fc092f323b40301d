"""
Runtime settings. Everything is read from the environment, and from a ``.env``
file in the working directory when one exists.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# plies searched for every automated move; depth 3 plays at roughly 1500
SEARCH_DEPTH = int(os.getenv("PARTHBOT_DEPTH", "3"))
# half-width of the random term added to every static evaluation, 0 turns it off
EVAL_JITTER = float(os.getenv("PARTHBOT_EVAL_JITTER", "5.0"))
# seed for the search's random source, unset means a fresh seed every run
SEED = int(os.getenv("PARTHBOT_SEED")) if os.getenv("PARTHBOT_SEED") else None
# the side the computer plays, 'w' or 'b'
AI_COLOR = os.getenv("PARTHBOT_AI_COLOR", "b")
AI_MOVE_DELAY_MS = int(os.getenv("AI_MOVE_DELAY_MS", "500"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
