# app/main.py

import asyncio
import signal
import sys
from typing import Optional

from dependency_injector import providers

from core.logging import configure_logging, get_logger
from app.containers import AppContainer
from core.config.settings import Settings
from core.config.validator import require_valid_configuration
from core.utils.exceptions import ConfigurationError, WorkerException, create_error_context

EXIT_OK = 0
EXIT_FAILURE = 1


class ApplicationOrchestrator:
    """Runs the offset worker and turns its outcome into a process exit status."""

    def __init__(self, settings: Optional[Settings] = None,
                 container: Optional[AppContainer] = None):
        self.container = container or AppContainer()
        if settings is not None:
            self.container.settings.override(providers.Object(settings))

        self.settings = self.container.settings()
        configure_logging(self.settings)
        self.logger = get_logger("offset_worker.main", component="application")
        self._shutdown_event = self.container.shutdown_event()

    async def startup(self) -> None:
        """Validate configuration and connect the worker."""
        self.logger.info(
            "Initializing worker",
            app=self.settings.app_name,
            version=self.settings.version,
            environment=self.settings.environment.value,
        )

        require_valid_configuration(self.settings)

        self.worker = self.container.offset_worker()
        await self.worker.start()

    async def shutdown(self) -> None:
        """Close the broker connection if the worker was created."""
        worker = getattr(self, "worker", None)
        if worker is None:
            return
        try:
            await worker.stop()
        except Exception as e:
            self.logger.error("Error during worker shutdown", error=str(e))
        self.logger.info("Worker shutdown complete")

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        self.logger.info("Received shutdown signal", signal=signal.Signals(signum).name)
        self._shutdown_event.set()

    async def run(self) -> int:
        """Run until shutdown or failure and return the exit status."""
        previous = {
            sig: signal.signal(sig, self._signal_handler)
            for sig in (signal.SIGTERM, signal.SIGINT)
        }

        try:
            await self.startup()
            self.logger.info("Worker is now running. Press Ctrl+C to exit.")
            await self.worker.run()
            return EXIT_OK
        except ConfigurationError as e:
            self.logger.error(
                "Configuration validation failed - cannot proceed with startup",
                **create_error_context(e, "validate_configuration"),
            )
            return EXIT_FAILURE
        except WorkerException as e:
            self.logger.error("Kafka consumer crashed", **create_error_context(e, "run_worker"))
            return EXIT_FAILURE
        except Exception as e:
            self.logger.exception("Kafka consumer crashed", **create_error_context(e, "run_worker"))
            return EXIT_FAILURE
        finally:
            await self.shutdown()
            for sig, handler in previous.items():
                signal.signal(sig, handler)


async def main(settings: Optional[Settings] = None) -> int:
    """Application entry point"""
    app = ApplicationOrchestrator(settings)
    return await app.run()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
