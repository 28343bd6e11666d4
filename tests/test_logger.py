"""Test logging setup and the orphan link report"""

import logging

from content_delivery.core.logger import (
    ErrorOnlyFilter,
    get_logger,
    log_orphan_link,
    setup_logging,
    shutdown_logging,
)
from content_delivery.core.progress import SyncProgressBar
from content_delivery.sync.merger import MergeResult


class TestLogging:
    """Test setup_logging() outputs"""

    def test_log_files(self, tmp_path):
        logs_dir = setup_logging(tmp_path)
        try:
            logger = get_logger("content_delivery.tests")
            logger.info("page merged")
            logger.error("page failed")
            log_orphan_link(
                logger,
                source_id="cat-1",
                field="image",
                locale="en-US",
                target_id="img-1",
                target_type="Asset"
            )
        finally:
            shutdown_logging()

        assert logs_dir == tmp_path / "logs"
        full_log = next(logs_dir.glob("sync_full_*.log")).read_text(encoding="utf-8")
        errors_log = next(logs_dir.glob("sync_errors_*.log")).read_text(encoding="utf-8")
        orphan_report = next(logs_dir.glob("orphan_links_*.log")).read_text(encoding="utf-8")

        assert "page merged" in full_log
        assert "Orphan link: cat-1.image (en-US) -> Asset img-1" in full_log
        assert "page failed" in errors_log
        assert "page merged" not in errors_log
        assert orphan_report == "entry cat-1 field 'image' (en-US)\n-> Asset img-1\n\n"

    def test_shutdown_removes_handlers(self, tmp_path):
        setup_logging(tmp_path, verbose=True)
        assert logging.getLogger().handlers

        shutdown_logging()

        assert logging.getLogger().handlers == []

    def test_error_only_filter(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "warn", None, None)
        assert not ErrorOnlyFilter().filter(record)
        record.levelno = logging.ERROR
        assert ErrorOnlyFilter().filter(record)


class TestSyncProgressBar:
    """Test progress bookkeeping"""

    def test_counts_pages(self):
        with SyncProgressBar() as progress:
            progress.on_page(None, MergeResult(upserted_entries=3, upserted_assets=1, deleted_entries=2))
            progress.on_page(None, MergeResult(upserted_assets=4))

        assert progress.pages == 2
        assert progress.upserts == 8
        assert progress.deletions == 2

    def test_stop_twice(self):
        progress = SyncProgressBar()
        progress.start()
        progress.stop(finished=False)
        progress.stop()
