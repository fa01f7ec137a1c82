"""
Scoring Logger - quiet background logging for scoring runs.
Console shows only warnings and errors; an optional per-run log file captures
every factor decision for auditing a ranking after the fact.
"""

import logging
import os
import re
from datetime import datetime
from typing import Optional


class ScoringLogger:
    """
    Process-wide logger for the scoring engine.
    Console output stays clean - only warnings and errors show.
    A run log file (when set up) captures everything.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if ScoringLogger._initialized:
            return

        self.logger = logging.getLogger('scoring_engine')
        self.logger.setLevel(logging.DEBUG)
        self.file_handler = None
        self.log_file_path = None

        self.console_handler = logging.StreamHandler()
        self.console_handler.setLevel(logging.WARNING)
        self.console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
        self.logger.addHandler(self.console_handler)

        ScoringLogger._initialized = True

    def setup_for_run(self, log_dir: str, run_name: str):
        """
        Start a log file for one scoring run (a batch, a CLI invocation).

        Args:
            log_dir: Directory the log file goes in (created if needed)
            run_name: Label used in the file name
        """
        if self.file_handler:
            self.logger.removeHandler(self.file_handler)
            self.file_handler.close()

        os.makedirs(log_dir, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        safe_name = re.sub(r'[^A-Za-z0-9_-]+', '_', run_name) or 'run'
        self.log_file_path = os.path.join(log_dir, f"scoring_{safe_name}_{timestamp}.log")

        self.file_handler = logging.FileHandler(self.log_file_path, encoding='utf-8')
        self.file_handler.setLevel(logging.DEBUG)
        self.file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(self.file_handler)

        self.info(f"=== Scoring Log Started for {run_name} ===")
        self.info(f"Log file: {self.log_file_path}")

    def close_run(self):
        if self.file_handler:
            self.logger.removeHandler(self.file_handler)
            self.file_handler.close()
            self.file_handler = None

    def debug(self, msg: str, *args):
        self.logger.debug(msg, *args)

    def info(self, msg: str, *args):
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args):
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args):
        self.logger.error(msg, *args)

    def factor_scored(self, entity_id: str, factor_id: str, raw, score: float, missing: bool):
        """Log one factor normalization"""
        if missing:
            self.debug("MISSING [%s] %s -> %.1f (midpoint)", entity_id, factor_id, score)
        else:
            self.debug("SCORED [%s] %s = %r -> %.1f", entity_id, factor_id, raw, score)

    def entity_failed(self, entity_id: str, code: str, message: str):
        self.warning("FAILED [%s] %s: %s", entity_id, code, message)

    def step_start(self, step_name: str):
        self.info(f">>> STEP START: {step_name}")

    def step_end(self, step_name: str, success: bool = True, details: str = None):
        status = "SUCCESS" if success else "FAILED"
        detail_str = f" - {details}" if details else ""
        self.info(f"<<< STEP END: {step_name} [{status}]{detail_str}")

    def get_log_path(self) -> Optional[str]:
        return self.log_file_path


_logger = None


def get_logger() -> ScoringLogger:
    """Get the global scoring logger instance"""
    global _logger
    if _logger is None:
        _logger = ScoringLogger()
    return _logger


def setup_logging(log_dir: str, run_name: str) -> ScoringLogger:
    """Convenience function to start a run log"""
    logger = get_logger()
    logger.setup_for_run(log_dir, run_name)
    return logger
