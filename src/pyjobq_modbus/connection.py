"""ConnectionManager: owns the single device session and reconnects with fixed backoff."""

import logging
import time
from typing import Callable

from .config import EngineConfig
from .errors import DeviceConnectionError, ModbusIOError
from .transport import DeviceTransport
from .types import ConnectionState, Endpoint, LinkStatus

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Decides when to (re)connect the transport and keeps ConnectionState in step
    with the live session. Only the scheduler's worker thread drives it.

    The reattempt counter in `state` is shared with the executor: connects and
    operations both count against it and both reset it.
    """

    def __init__(
        self,
        transport: DeviceTransport,
        config: EngineConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._config = config if config is not None else EngineConfig()
        self._sleep = sleep
        self.state = ConnectionState()
        self._status = LinkStatus.DISCONNECTED

    @property
    def transport(self) -> DeviceTransport:
        return self._transport

    @property
    def status(self) -> LinkStatus:
        return self._status

    def ensure_connected(self, endpoint: Endpoint) -> None:
        """
        Make sure the transport holds a live session to `endpoint`.

        No transport call is made when already connected to it. A different
        endpoint always forces the current session closed first.
        Raises DeviceConnectionError once max_connect_attempts retries are used up.
        """
        state = self.state
        if state.endpoint != endpoint:
            if state.endpoint is not None or state.connected:
                logger.debug("Switching endpoint %s -> %s; closing session", state.endpoint, endpoint)
                self._close_transport()
            state.connected = False
            state.endpoint = None
            self._status = LinkStatus.DISCONNECTED

        if state.connected:
            return

        while True:
            self._status = LinkStatus.CONNECTING
            try:
                self._transport.connect(endpoint)
            except ModbusIOError as e:
                state.connected = False
                self._status = LinkStatus.DISCONNECTED
                if state.reattempts < self._config.max_connect_attempts:
                    logger.warning(
                        "Connect to %s failed (attempt %d): %s",
                        endpoint,
                        state.reattempts + 1,
                        e,
                    )
                    self._sleep(self._config.connect_retry_delay)
                    state.reattempts += 1
                    continue
                attempts = state.reattempts + 1
                state.reattempts = 0
                logger.error("Giving up connecting to %s after %d attempts", endpoint, attempts)
                raise DeviceConnectionError(endpoint, attempts, cause=e) from e

            state.connected = True
            state.endpoint = endpoint
            state.reattempts = 0
            self._transport.configure(self._config.unit_id, self._config.response_timeout)
            self._status = LinkStatus.CONNECTED
            logger.info("Connected to %s", endpoint)
            return

    def _close_transport(self) -> None:
        # A failed close still ends the session; the next job reconnects.
        try:
            self._transport.close()
        except Exception as e:
            logger.warning("Error closing transport for %s: %s", self.state.endpoint, e)

    def disconnect(self) -> None:
        """Close the transport and reset the connection state, even if close() fails."""
        if self.state.endpoint is not None or self.state.connected:
            logger.info("Disconnecting from %s", self.state.endpoint)
        self._close_transport()
        self.state.reset()
        self._status = LinkStatus.DISCONNECTED
