"""
Main entry point for the notebook console application
"""
from loguru import logger

from notebook_studio.utils.logger import setup_logger
from notebook_studio.config import get_settings
from notebook_studio.app import NotebookApp
from notebook_studio.console import ConsoleCommandHandler
from notebook_studio.console.handlers import HELP_TEXT


def main():
    """Main entry point"""
    setup_logger()

    try:
        # Load settings
        settings = get_settings()
        setup_logger(settings.log_level, settings.data_dir / "logs" / "notebook.log")
        logger.info("Settings loaded successfully")

        with NotebookApp.create(settings) as app:
            if not app.generator.test_connection():
                logger.warning("LLM backend is not reachable, generation requests will fail until it is")
            handler = ConsoleCommandHandler(app)
            print(HELP_TEXT)
            while True:
                try:
                    line = input("\nnotebook> ")
                except EOFError:
                    break
                if line.strip().lower() in ("/quit", "/exit"):
                    break

                reply, error = handler.handle_line(line)
                if error:
                    print(f"! {error}")
                elif reply:
                    print(reply)

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, exiting...")
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        logger.info("Please check your .env file or environment variables")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")


if __name__ == "__main__":
    main()
