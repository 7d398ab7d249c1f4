from dataclasses import dataclass
from pathlib import Path

import uvicorn

from svcbalancer.applications import Balancer
from svcbalancer.config import load_config
from svcbalancer.logger import setup_logger


@dataclass
class AppConfiguration:
    config_path: Path
    log_level: int
    log_serialize: bool


@dataclass
class ServerConfiguration:
    host: str | None
    port: int | None
    log_level: int


class ApplicationRunner:
    def run(self, app_configuration: AppConfiguration, server_configuration: ServerConfiguration):
        setup_logger(app_configuration.log_level, app_configuration.log_serialize)
        config = load_config(app_configuration.config_path)
        app = Balancer(config)

        host = server_configuration.host if server_configuration.host is not None else config.host
        port = server_configuration.port if server_configuration.port is not None else config.port

        uvicorn.run(
            app,
            lifespan="on",
            host=host,
            port=port,
            log_level=server_configuration.log_level,
        )
