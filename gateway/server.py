"""
GatewayServer class for CLI control of the FastAPI application.
"""
import logging
import os
import uvicorn

from settings import PORT, LOG_LEVEL, BIND_ADDRESS, LOG_FILE, PUBLIC_BASE_URL
from utils.storage import SettingsStore
from .app import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class GatewayServer:
    """Gateway server wrapper for CLI control"""

    def __init__(self, debug: bool = False, bind_address: str = None, port: int = None, settings_file: str = None):
        self.server = None
        self.config = None
        self.debug = debug
        self.bind_address = bind_address or BIND_ADDRESS
        self.port = port or PORT

        self._setup_logging()
        self.app = create_app(store=SettingsStore(settings_file))

    def _setup_logging(self):
        """Configure the root logger; debug mode also appends to LOG_FILE"""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG if self.debug else LOG_LEVEL.upper())

        # Clear existing handlers to avoid duplicates
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if self.debug:
            log_file = os.path.abspath(LOG_FILE)
            os.makedirs(os.path.dirname(log_file), exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logger.info(f"Debug logging enabled - appending to {log_file}")

    def run(self):
        """Run the gateway server (blocking)"""
        logger.info(f"Starting TinyClaw auth broker on http://{self.bind_address}:{self.port}")
        logger.info(f"OAuth redirect URIs are built from {PUBLIC_BASE_URL}")
        self.config = uvicorn.Config(
            self.app,
            host=self.bind_address,
            port=self.port,
            log_level=LOG_LEVEL,
            access_log=False  # Request middleware already logs /api calls
        )
        self.server = uvicorn.Server(self.config)
        self.server.run()

    def stop(self):
        """Stop the gateway server"""
        if self.server:
            self.server.should_exit = True
