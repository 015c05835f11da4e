"""
MPD Playback - Transport Control for the Sleep Timer

Implements PlaybackController (has_active_session/pause) and
ContentAdvanceSink (signal_advance) on top of one lazily opened MPD
connection. Every call is best-effort: a timer firing while MPD is
unreachable must not break the trigger handler.

Connection policy:
- connect on first use, reuse afterwards
- a dropped connection is marked closed and reopened by the next call
- pause() retries once after a dropped connection; the others do not

Example Usage:
    playback = MPDPlayback(host="localhost", port=6600)
    if playback.has_active_session():
        playback.pause()
"""

import time
from contextlib import contextmanager
from typing import Optional

from mpd import MPDClient, ConnectionError as MPDConnectionError

import config
from napclock.base_module import BaseModule

CONNECTION_ERRORS = (MPDConnectionError, ConnectionError, OSError)


class MPDPlayback(BaseModule):
    """MPD-backed playback collaborator."""

    def __init__(
        self,
        host: str = None,
        port: int = None,
        timeout: int = None,
        client: Optional[MPDClient] = None,
        max_retries: int = 2,
        debug: bool = False,
        verbose: bool = True,
    ):
        """
        Args:
            host: MPD server hostname (default: from config)
            port: MPD server port (default: from config)
            timeout: Socket timeout in seconds (default: from config)
            client: Pre-built client (tests)
            max_retries: Attempts for pause()
            debug: Enable debug logging
        """
        super().__init__(__name__, debug=debug, verbose=verbose)
        self.host = host or config.MPD_HOST
        self.port = port or config.MPD_PORT
        self.timeout = timeout or config.MPD_TIMEOUT
        self.max_retries = max_retries

        self.client: MPDClient = client or MPDClient()
        self.client.timeout = self.timeout
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    def _connect(self):
        try:
            self.client.connect(self.host, self.port)
        except MPDConnectionError as e:
            if "Already connected" not in str(e):
                raise
            self.logger.debug("MPD client already connected, reusing connection")
        self._connected = True
        self.logger.info(f"Connected to MPD at {self.host}:{self.port}")

    @contextmanager
    def _session(self):
        """Yield a connected client; a connection error closes the session and propagates."""
        try:
            if not self._connected:
                self._connect()
            yield self.client
        except CONNECTION_ERRORS:
            if self._connected:
                self.logger.warning("MPD connection lost, will reconnect on next call")
            self._connected = False
            raise

    def disconnect(self) -> None:
        if not self._connected:
            return
        try:
            self.client.close()
            self.client.disconnect()
            self.logger.info("Disconnected from MPD")
        except Exception as e:
            self.logger.warning(f"Error disconnecting from MPD: {e}")
        finally:
            self._connected = False

    def has_active_session(self) -> bool:
        """True while MPD is playing"""
        try:
            with self._session() as client:
                return client.status().get('state') == 'play'
        except Exception as e:
            self.logger.warning(f"MPD status unavailable: {e}")
            return False

    def pause(self) -> None:
        """Pause playback (safe even if nothing is playing)."""
        for attempt in range(self.max_retries):
            try:
                with self._session() as client:
                    if client.status().get('state') == 'play':
                        client.pause(1)
                        self.logger.info("⏸️  Paused by sleep timer")
                    else:
                        self.logger.info("⏸️  Nothing playing, pause ignored")
                    return
            except CONNECTION_ERRORS as e:
                if attempt < self.max_retries - 1:
                    self.logger.debug(f"⏸️  Pause connection error (retry {attempt + 1}/{self.max_retries}): {e}")
                    time.sleep(0.1)
                    continue
                self.logger.warning(f"⏸️  Pause failed after {self.max_retries} attempts: {e}")

    def signal_advance(self) -> None:
        """Skip to the next queued item."""
        try:
            with self._session() as client:
                client.next()
            self.logger.info("⏭️  Advanced to next content item")
        except Exception as e:
            self.logger.warning(f"⏭️  Advance failed: {e}")
