import time

from inventory_agent.config.loader import load_config
from inventory_agent.utils.logger import setup_logger
from inventory_agent.core.publisher import publish
from inventory_agent.core.snapshot import build_snapshot
from inventory_agent.core.transport import HttpAttributeTransport

INVENTORY_PATH = "/guestInventory"


class Agent:
    def __init__(self, config=None, transport=None, snapshot_fn=build_snapshot, sleep=time.sleep):
        self.config = config if config is not None else load_config()
        self.logger = setup_logger(self.config.get("LOG_LEVEL", "INFO"))

        if not self.config.get("REPORT_URL"):
            raise RuntimeError("Missing agent configuration")

        self.transport = transport or HttpAttributeTransport(timeout=self.config["HTTP_TIMEOUT"])
        self.snapshot_fn = snapshot_fn
        self.sleep = sleep

    @property
    def inventory_url(self):
        return self.config["REPORT_URL"] + INVENTORY_PATH

    def run_once(self):
        """Run one report cycle and return the snapshot's error log."""
        snapshot = self.snapshot_fn()
        publish(snapshot, self.inventory_url, self.transport)

        if len(snapshot.errors):
            self.logger.warning(f"Inventory reported with {len(snapshot.errors)} error(s)")
        else:
            self.logger.info("Inventory reported")
        return snapshot.errors

    def run(self, max_cycles=None):
        self.logger.info(
            f"Starting inventory agent | url={self.inventory_url} "
            f"| interval={self.config['INVENTORY_INTERVAL']}s"
        )

        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            try:
                self.run_once()
            except Exception:
                self.logger.exception("Inventory cycle failed")
            cycles += 1

            if max_cycles is None or cycles < max_cycles:
                self.sleep(self.config["INVENTORY_INTERVAL"])

    def close(self):
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()
