"""Base endpoint interface for workflow services."""

from abc import ABC, abstractmethod
from typing import List, Optional
import logging

from ..errors import EndpointError
from ..models.record import Record
from ..models.transfer import TransferFilters

logger = logging.getLogger(__name__)


class BaseEndpoint(ABC):
    """
    Base class for source and target endpoints.

    An endpoint can test its connectivity, list its records and create
    or update a record. Failures are raised as EndpointError.
    """

    def __init__(self, name: str, url: str = ""):
        """
        Initialize the endpoint.

        Args:
            name: Label used in logs and reports ("source", "target")
            url: Base URL of the service
        """
        self.name = name
        self.url = url

    @abstractmethod
    def test_connectivity(self) -> None:
        """
        Check that the service is reachable and accepts our credentials.

        Raises:
            AuthenticationError: the credentials were rejected
            EndpointError: the service could not be reached
        """
        pass

    @abstractmethod
    def list_records(self, filters: Optional[TransferFilters] = None) -> List[Record]:
        """
        Fetch every record, optionally narrowed server-side.

        Args:
            filters: Filters the service may apply itself

        Returns:
            List of records
        """
        pass

    @abstractmethod
    def create_or_update_record(self, record: Record) -> str:
        """
        Write a record to the service.

        Args:
            record: Record to create, or update if it already exists

        Returns:
            Identifier assigned by the service
        """
        pass

    def validate_connection(self) -> bool:
        """Connectivity check reduced to a boolean."""
        try:
            self.test_connectivity()
            return True
        except EndpointError as e:
            logger.error(f"{self.name} connection validation failed: {e}")
            return False
