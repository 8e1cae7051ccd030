"""
Main application orchestrator for the Deal Notifier system.

This module runs the scheduled pipeline: load channel-grouped configuration,
then for every channel concurrently fetch each search term's deals, drop
already-notified and keyword-filtered ones, record the rest as seen and
deliver them to the channel's webhook in one batch.
"""

import asyncio
import signal
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from .components.deal_parser import DealParser
from .components.embed_formatter import EmbedFormatter
from .components.keyword_filter import KeywordFilter
from .components.message_dispatcher import WebhookDispatcher
from .exceptions import FetchError, StoreError
from .interfaces import (
    IConfigurationProvider,
    IDealParser,
    IDedupStore,
    IKeywordFilter,
    IMessageDispatcher,
)
from .models.config import ChannelWithConfigs, NotifierSettings
from .models.deal import AcceptedDeal
from .models.run import ChannelReport, RunReport
from .services.config_manager import ConfigurationManager
from .services.config_provider import ConfigurationProvider
from .services.config_store import YamlConfigurationStore
from .services.dedup_store import JsonDedupStore
from .utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    get_degradation_manager,
    get_error_tracker,
    with_error_handling,
)
from .utils.logging import get_logger, get_logging_stats


class NotificationOrchestrator:
    """
    Coordinates one pipeline run per polling interval.

    Channels are processed concurrently up to max_concurrent_channels; the
    search terms of one channel are processed sequentially. A failure in one
    channel never affects another.
    """

    def __init__(
        self,
        settings: NotifierSettings,
        config_provider: IConfigurationProvider,
        deal_parser: IDealParser,
        keyword_filter: IKeywordFilter,
        dedup_store: IDedupStore,
        dispatcher: IMessageDispatcher,
    ):
        self.settings = settings
        self.config_provider = config_provider
        self.deal_parser = deal_parser
        self.keyword_filter = keyword_filter
        self.dedup_store = dedup_store
        self.dispatcher = dispatcher

        self.logger = get_logger("orchestrator")
        self.error_tracker = get_error_tracker()
        self.degradation_manager = get_degradation_manager()

        self._running = False
        self._shutdown_event = asyncio.Event()
        self._startup_time: Optional[datetime] = None
        self._last_run: Optional[RunReport] = None
        self._runs_completed = 0

    @classmethod
    def from_config_file(
        cls, config_path: Optional[str] = None
    ) -> "NotificationOrchestrator":
        """
        Build an orchestrator and its components from a configuration file.

        Raises:
            ConfigurationError: If the settings are invalid.
            FileNotFoundError: If the configuration file doesn't exist.
        """
        config_manager = ConfigurationManager(config_path)
        return cls.from_settings(
            config_manager.load_settings(), config_manager.config_path
        )

    @classmethod
    def from_settings(
        cls, settings: NotifierSettings, config_path: str
    ) -> "NotificationOrchestrator":
        """Build an orchestrator whose channels are read from config_path."""
        store = YamlConfigurationStore(config_path)
        return cls(
            settings=settings,
            config_provider=ConfigurationProvider(store, ttl=settings.cache_ttl),
            deal_parser=DealParser(
                base_url=settings.source_base_url,
                timeout=settings.request_timeout,
            ),
            keyword_filter=KeywordFilter(),
            dedup_store=JsonDedupStore(settings.dedup_state_file),
            dispatcher=WebhookDispatcher(
                formatter=EmbedFormatter(chunk_size=settings.chunk_size),
                message_delay=settings.message_delay,
                timeout=settings.request_timeout,
            ),
        )

    async def run_once(self) -> RunReport:
        """
        Run the pipeline once over every configured channel.

        Returns:
            RunReport with one ChannelReport per channel processed
        """
        report = RunReport(started_at=datetime.now())

        await self._prune_seen_records()

        groups = await self.config_provider.load_grouped_by_channel()
        if not groups:
            self.logger.info("No enabled search terms configured; nothing to do")
            return self._finish_run(report)

        self.logger.info(
            "Starting run",
            extra={
                "channels": len(groups),
                "search_terms": sum(len(group.configs) for group in groups),
            },
        )

        channel_reports = {
            group.channel.channel_id: ChannelReport(
                channel_id=group.channel.channel_id,
                channel_name=group.channel.name,
            )
            for group in groups
        }
        completed: Set[str] = set()
        semaphore = asyncio.Semaphore(self.settings.max_concurrent_channels)

        tasks = [
            self._run_channel(
                group, channel_reports[group.channel.channel_id], semaphore, completed
            )
            for group in groups
        ]

        try:
            await asyncio.wait_for(
                asyncio.gather(*tasks), timeout=self.settings.run_timeout
            )
        except asyncio.TimeoutError:
            report.timed_out = True
            for channel_id, channel_report in channel_reports.items():
                if channel_id not in completed and channel_report.error is None:
                    channel_report.error = "Run timed out"
            self.error_tracker.record_error(
                component="orchestrator",
                category=ErrorCategory.SYSTEM,
                severity=ErrorSeverity.HIGH,
                message=f"Run exceeded {self.settings.run_timeout}s budget",
                context={"unfinished_channels": len(groups) - len(completed)},
            )

        report.channels = list(channel_reports.values())
        return self._finish_run(report)

    def _finish_run(self, report: RunReport) -> RunReport:
        report.finished_at = datetime.now()
        self._last_run = report
        self._runs_completed += 1

        summary = report.summary()
        if report.timed_out or report.failed_channels:
            self.logger.warning("Run finished with failures", extra=summary)
        else:
            self.logger.info("Run finished", extra=summary)
        return report

    async def _run_channel(
        self,
        group: ChannelWithConfigs,
        report: ChannelReport,
        semaphore: asyncio.Semaphore,
        completed: Set[str],
    ) -> None:
        """Process one channel, capturing any failure in its report."""
        async with semaphore:
            try:
                await self.process_channel(group, report)
            except Exception as e:
                report.error = str(e) or type(e).__name__
                self.logger.error(
                    "Channel processing failed",
                    extra={"channel_id": group.channel.channel_id, "error": str(e)},
                )
            completed.add(group.channel.channel_id)

    @with_error_handling(
        component="orchestrator",
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.HIGH,
    )
    async def process_channel(
        self, group: ChannelWithConfigs, report: ChannelReport
    ) -> List[AcceptedDeal]:
        """
        Collect new deals for every search term of a channel and deliver them.

        Seen records are written as deals are accepted, before delivery.

        Returns:
            The accepted deals, in delivery order
        """
        loop = asyncio.get_running_loop()
        channel = group.channel
        batch: List[AcceptedDeal] = []
        batched_ids: Set[str] = set()

        for config in group.configs:
            try:
                deals = await loop.run_in_executor(
                    None, self.deal_parser.fetch_deals, config.search_term
                )
            except FetchError as e:
                report.search_terms_failed += 1
                self.error_tracker.record_error(
                    component="deal.parser",
                    category=ErrorCategory.NETWORK,
                    severity=ErrorSeverity.MEDIUM,
                    message=str(e),
                    exception=e,
                    context={
                        "channel_id": channel.channel_id,
                        "search_term": config.search_term,
                        "status_code": e.status_code,
                    },
                )
                continue

            report.search_terms_processed += 1
            report.candidates += len(deals)

            for deal in deals:
                if deal.deal_id in batched_ids:
                    report.duplicates += 1
                    continue

                seen = await loop.run_in_executor(
                    None, self.dedup_store.exists, deal.deal_id
                )
                if seen:
                    report.duplicates += 1
                    continue

                if not self.keyword_filter.accepts(deal, config):
                    report.filtered += 1
                    continue

                try:
                    await loop.run_in_executor(
                        None, self.dedup_store.record, deal, config.search_term
                    )
                except StoreError as e:
                    self.error_tracker.record_error(
                        component="dedup.store",
                        category=ErrorCategory.STORAGE,
                        severity=ErrorSeverity.HIGH,
                        message=str(e),
                        exception=e,
                        context={
                            "channel_id": channel.channel_id,
                            "deal_id": deal.deal_id,
                        },
                    )
                    continue

                batch.append(AcceptedDeal(deal=deal, search_term=config.search_term))
                batched_ids.add(deal.deal_id)
                report.accepted += 1

        if not batch:
            self.logger.debug(
                "No new deals for channel", extra={"channel_id": channel.channel_id}
            )
            return batch

        self.logger.info(
            "Delivering new deals",
            extra={"channel_id": channel.channel_id, "deals": len(batch)},
        )
        result = await loop.run_in_executor(
            None, self.dispatcher.deliver, channel.webhook_url, batch
        )
        report.delivery = result

        if not result.success:
            self.error_tracker.record_error(
                component="message.dispatcher",
                category=ErrorCategory.MESSAGE_DELIVERY,
                severity=ErrorSeverity.HIGH,
                message=result.error_message or "Delivery failed",
                context={
                    "channel_id": channel.channel_id,
                    "chunks_sent": result.chunks_sent,
                    "chunks_failed": result.chunks_failed,
                },
            )

        return batch

    async def _prune_seen_records(self) -> None:
        """Drop seen records past the retention window, when one is configured."""
        retention_days = self.settings.retention_days
        prune = getattr(self.dedup_store, "prune", None)
        if retention_days is None or prune is None:
            return

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, prune, retention_days)
        except Exception as e:
            self.error_tracker.record_error(
                component="dedup.store",
                category=ErrorCategory.STORAGE,
                severity=ErrorSeverity.LOW,
                message=f"Pruning seen records failed: {e}",
                exception=e,
            )

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        if sys.platform == "win32":
            signal.signal(signal.SIGINT, self._signal_handler)
            return

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, self._signal_handler, signum, None)

    def _signal_handler(self, signum: int, frame) -> None:
        """Handle shutdown signals."""
        self.logger.info(
            "Received shutdown signal, initiating graceful shutdown",
            extra={"signal": signum},
        )
        self._running = False
        self._shutdown_event.set()

    async def run_forever(self) -> None:
        """Run the pipeline every polling interval until shutdown."""
        self._running = True
        self._startup_time = datetime.now()
        self._setup_signal_handlers()

        self.logger.info(
            "Deal notifier started",
            extra={"polling_interval": self.settings.polling_interval},
        )

        try:
            while self._running and not self._shutdown_event.is_set():
                try:
                    await self.run_once()
                except Exception as e:
                    self.logger.error(f"Error in main loop: {e}", exc_info=True)

                try:
                    await asyncio.wait_for(
                        self._shutdown_event.wait(),
                        timeout=self.settings.polling_interval,
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Gracefully shutdown the system."""
        was_running = self._running
        self._running = False
        self._shutdown_event.set()

        for component in (self.deal_parser, self.dispatcher):
            close = getattr(component, "close", None)
            if close is not None:
                close()

        if was_running or self._startup_time is not None:
            uptime = datetime.now() - self._startup_time if self._startup_time else None
            self.logger.info(f"System shutdown complete. Uptime: {uptime}")

    def get_system_status(self) -> Dict[str, Any]:
        """Get current system status information."""
        count = getattr(self.dedup_store, "count", None)
        cache_info = getattr(self.config_provider, "get_cache_info", None)
        return {
            "running": self._running,
            "startup_time": self._startup_time.isoformat()
            if self._startup_time
            else None,
            "uptime": str(datetime.now() - self._startup_time)
            if self._startup_time
            else None,
            "runs_completed": self._runs_completed,
            "last_run": self._last_run.summary() if self._last_run else None,
            "seen_deals": count() if count is not None else None,
            "degraded_components": self.degradation_manager.get_all_degraded(),
            "error_stats": self.error_tracker.get_error_stats(),
            "config_cache": cache_info() if cache_info is not None else None,
            "logging": get_logging_stats(),
        }
