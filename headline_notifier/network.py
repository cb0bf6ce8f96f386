"""Network connectivity checks used as a job precondition."""

import logging
import socket
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class NetworkMonitor(ABC):
    """Abstract base class for connectivity checks."""

    @abstractmethod
    def is_connected(self) -> bool:
        """Return True if the network is currently usable."""
        pass


class AlwaysConnected(NetworkMonitor):
    """Treats the network as always available."""

    def is_connected(self) -> bool:
        return True


class SocketNetworkMonitor(NetworkMonitor):
    """Probes connectivity by opening a TCP connection to a known host."""

    def __init__(self, host: str = "newsapi.org", port: int = 443, timeout: float = 3.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    def is_connected(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug(f"Network check to {self.host}:{self.port} failed: {e}")
            return False
