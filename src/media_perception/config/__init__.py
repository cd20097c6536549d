"""Package configuration"""

import logging
from dotenv import load_dotenv

from .loader import load_raw_config
from .core import Core
from .perception import Perception

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)

_RAW_CONFIG = load_raw_config()

core = Core(_RAW_CONFIG)
perception = Perception(_RAW_CONFIG)


class Config:
    core = core
    perception = perception


__all__ = ["core", "perception", "Config"]
