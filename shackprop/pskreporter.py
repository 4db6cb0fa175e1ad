"""PSKReporter client feeding reception reports into the spot store."""

import logging
import threading
import time
import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import requests

from .geo_utils import locator_to_point
from .models import Spot
from .spots import SpotStore

logger = logging.getLogger(__name__)

PSKREPORTER_URL = "https://retrieve.pskreporter.info/query"
USER_AGENT = "shack-propagation/1.0"
POLL_INTERVAL = 300


def parse_reception_reports(xml_data: str | bytes) -> list[Spot]:
    """Parse PSKReporter XML into spots placed at the receiver's locator.

    Reports without a usable locator or frequency are skipped.
    """
    root = ET.fromstring(xml_data)
    spots = []

    for report in root.iter('receptionReport'):
        point = locator_to_point(report.get('receiverLocator', ''))
        if point is None:
            continue
        try:
            freq_mhz = int(report.get('frequency', 0)) / 1_000_000
            ts_unix = int(report.get('flowStartSeconds', '0'))
        except ValueError:
            continue
        if freq_mhz <= 0:
            continue

        spots.append(Spot(
            freq_mhz=freq_mhz,
            lat=point.lat,
            lon=point.lon,
            timestamp=datetime.fromtimestamp(ts_unix, tz=timezone.utc),
            source="pskreporter",
        ))

    return spots


def fetch_spots(callsign: str, start_time: datetime, mode: str = "FT8",
                timeout: float = 30) -> list[Spot]:
    """Fetch reception reports of callsign's signal since start_time.

    Note:
        PSKReporter limits queries to 24 hours back and rate limits
        aggressive clients (HTTP 429); those are retried with backoff.
    """
    now = datetime.now(timezone.utc)
    seconds_ago = min(86400, max(1, int((now - start_time).total_seconds())))
    params = {
        "senderCallsign": callsign,
        "flowStartSeconds": f"-{seconds_ago}",
        "mode": mode,
        "rronly": 1,
    }

    for attempt in range(3):
        try:
            resp = requests.get(PSKREPORTER_URL, params=params,
                                headers={"User-Agent": USER_AGENT}, timeout=timeout)
            if resp.status_code == 429 and attempt < 2:
                time.sleep(2 ** attempt)
                continue
            resp.raise_for_status()
            return parse_reception_reports(resp.content)
        except requests.RequestException as e:
            if attempt < 2:
                time.sleep(1)
                continue
            logger.warning("Error fetching PSKReporter data: %s", e)
        except ET.ParseError as e:
            logger.warning("Bad PSKReporter response: %s", e)
            break

    return []


def poll_spots(store: SpotStore, callsign: str, interval: float = POLL_INTERVAL,
               stop_event: threading.Event | None = None, window_minutes: float = 15) -> None:
    """Refresh the store from PSKReporter until stop_event is set."""
    stop_event = stop_event or threading.Event()
    since = datetime.fromtimestamp(time.time() - window_minutes * 60, tz=timezone.utc)
    while not stop_event.is_set():
        polled_at = datetime.now(timezone.utc)
        # only reports newer than the previous poll, so nothing is counted twice
        new = [s for s in fetch_spots(callsign, since) if s.timestamp >= since]
        added = store.extend(new)
        logger.info("PSKReporter: %d new spots for %s", added, callsign)
        since = polled_at
        stop_event.wait(interval)


def start_polling(store: SpotStore, callsign: str, interval: float = POLL_INTERVAL) -> threading.Event:
    """Run poll_spots in a daemon thread. Set the returned event to stop it."""
    stop_event = threading.Event()
    thread = threading.Thread(target=poll_spots, args=(store, callsign, interval, stop_event),
                              name="pskreporter-poll", daemon=True)
    thread.start()
    return stop_event
