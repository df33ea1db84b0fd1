"""Application entry point for the dashboard notes server."""

from dashnotes.app import App
from dashnotes.config import Config
from dashnotes.logging import setup_logging
from dashnotes.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug, config.json_logs)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
