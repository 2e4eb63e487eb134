"""Main application entry point for CareVoice."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from . import __version__
from .config import CareVoiceConfig

logger = logging.getLogger(__name__)


class Client:
    """Interactive terminal client: capture, translate, speak."""

    def __init__(self, config: CareVoiceConfig, input_language: Optional[str] = None,
                 output_language: Optional[str] = None):
        self.config = config
        self.input_language = input_language or config.get_input_language()
        self.output_language = output_language or config.get_output_language()

    async def run(self) -> None:
        # Imported here so `carevoice serve` does not need audio libraries
        from .capture.google_streaming import GoogleSpeechCaptureProvider
        from .services.transcriber import Transcriber
        from .synthesis.pyttsx3_backend import Pyttsx3Synthesis
        from .translation.client import TranslationClient
        from .ui.transcriber_screen import TranscriberScreen

        logger.info("Initializing services...")
        backend_url = self.config.get('client.backend_url', 'http://localhost:3000')
        transcriber = Transcriber(
            capture_provider=GoogleSpeechCaptureProvider(self.config),
            transport=TranslationClient(backend_url),
            synthesis=Pyttsx3Synthesis(
                rate=self.config.get('synthesis.rate'),
                volume=self.config.get('synthesis.volume'),
            ),
            input_language=self.input_language,
            output_language=self.output_language,
            debounce_seconds=float(self.config.get('translation.debounce_seconds', 1.0)),
        )
        screen = TranscriberScreen(transcriber)
        try:
            await screen.run()
        finally:
            screen.shutdown()
            await transcriber.aclose()


FILE_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
CONSOLE_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(config: CareVoiceConfig, level: str = "INFO") -> None:
    """Send everything to the log file and warnings to stderr (if enabled).

    The stderr handler is kept at WARNING so it does not scroll the live
    terminal screen during normal operation.
    """
    log_file = Path(config.get('logging.file_path', 'data/logs/carevoice.log'))
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())
    root.addHandler(file_handler)

    if config.get('logging.console_output', True):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
        root.addHandler(console_handler)

    logger.info(f"CareVoice v{__version__} starting (log level {level}, log file {log_file})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CareVoice - real-time voice transcription, AI-enhanced translation, speech playback",
        epilog="Keys in listen mode: SPACE=start/stop, p=speak, c=clear, i/o=change language, q=quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults + environment)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"CareVoice v{__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the translation proxy server")
    serve.add_argument("--host", type=str, help="Bind address (overrides config)")
    serve.add_argument("--port", type=int, help="Port (overrides config and $PORT)")

    listen = subparsers.add_parser("listen", help="Run the interactive transcription client")
    listen.add_argument("--input-lang", type=str, help="Input language tag, e.g. en-US")
    listen.add_argument("--output-lang", type=str, help="Output language code, e.g. es")
    listen.add_argument("--backend-url", type=str, help="Translation server base URL (overrides config)")

    return parser


def main(argv: Optional[list] = None) -> None:
    """Main entry point for CareVoice."""
    args = build_parser().parse_args(argv)

    try:
        config = CareVoiceConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

    try:
        if args.command == "serve":
            from .server.app import run_server
            if args.host:
                config.set('server.host', args.host)
            if args.port:
                config.set('server.port', args.port)
            run_server(config)
        else:
            if args.backend_url:
                config.set('client.backend_url', args.backend_url)
            client = Client(config, args.input_lang, args.output_lang)
            asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
