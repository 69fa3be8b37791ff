from abc import ABC, abstractmethod

from hiremind.models import Listing, ListingDetail, ListingQuery


class ListingSource(ABC):
    @abstractmethod
    def search(self, query: ListingQuery) -> list[Listing]:
        pass

    @abstractmethod
    def fetch_details(self, listing_id: str) -> ListingDetail:
        pass
