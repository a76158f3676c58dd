"""
Fixtures compartidas.

InMemoryStore sustituye a Supabase en los tests de servicios y API: los
repositorios falsos exponen los mismos métodos que los reales y award_bid /
confirm_payment se aplican bajo un lock, con la misma precondición de estado
que las funciones SQL.
"""

import threading
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from backend.models import BidStatus, CurrentUser, TenderStatus
from backend.services import ChatService, TenderService

FIXED_NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Reloj controlable; cada lectura avanza un segundo para que created_at sea único."""

    def __init__(self, start: datetime = FIXED_NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryStore:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.tenders = {}
        self.bids = {}
        self.messages = {}

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())


class _FakeRepo:
    table_name = ""

    def __init__(self, store: InMemoryStore, app_id: str = "test-app") -> None:
        self.store = store
        self.app_id = app_id

    def _rows(self):
        return getattr(self.store, self.table_name)

    def get_by_id(self, pk_value, select="*", pk_column=None):
        with self.store.lock:
            row = self._rows().get(str(pk_value))
            return dict(row) if row else None

    def create(self, data):
        with self.store.lock:
            row = dict(data)
            row["id"] = self.store.new_id()
            row["app_id"] = self.app_id
            self._rows()[row["id"]] = row
            return dict(row)


class FakeTendersRepository(_FakeRepo):
    table_name = "tenders"

    def list_tenders(self, status=None, client_id=None):
        with self.store.lock:
            rows = [dict(r) for r in self.store.tenders.values()]
        if status:
            rows = [r for r in rows if r["status"] == status]
        if client_id:
            rows = [r for r in rows if r["client_id"] == client_id]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    def award_bid(self, tender_id, bid_id, client_id, awarded_at):
        with self.store.lock:
            tender = self.store.tenders.get(tender_id)
            bid = self.store.bids.get(bid_id)
            if (
                tender is None
                or bid is None
                or tender["status"] != TenderStatus.OPEN.value
                or tender["client_id"] != client_id
                or bid["tender_id"] != tender_id
                or bid["status"] != BidStatus.PENDING.value
            ):
                return None
            tender.update(
                status=TenderStatus.AWARDED.value,
                awarded_bid_id=bid_id,
                awarded_contractor_id=bid["contractor_id"],
                awarded_amount=bid["amount"],
                platform_fee=bid["platform_fee"],
                awarded_at=awarded_at.isoformat(),
            )
            for other in self.store.bids.values():
                if other["tender_id"] != tender_id or other["status"] != BidStatus.PENDING.value:
                    continue
                other["status"] = BidStatus.AWARDED.value if other["id"] == bid_id else BidStatus.REJECTED.value
            return dict(tender)

    def confirm_payment(self, tender_id, client_id, payment_date):
        with self.store.lock:
            tender = self.store.tenders.get(tender_id)
            if tender is None or tender["status"] != TenderStatus.AWARDED.value or tender["client_id"] != client_id:
                return None
            tender.update(status=TenderStatus.PAID.value, payment_date=payment_date.isoformat())
            self.store.bids[tender["awarded_bid_id"]]["status"] = BidStatus.PAID.value
            return dict(tender)


class FakeBidsRepository(_FakeRepo):
    table_name = "bids"

    def _sorted(self, rows):
        return sorted(rows, key=lambda r: (r["created_at"], r["id"]))

    def list_for_tender(self, tender_id):
        with self.store.lock:
            return self._sorted(dict(r) for r in self.store.bids.values() if r["tender_id"] == tender_id)

    def list_all(self):
        with self.store.lock:
            return self._sorted(dict(r) for r in self.store.bids.values())

    def list_for_contractor(self, contractor_id):
        with self.store.lock:
            rows = [dict(r) for r in self.store.bids.values() if r["contractor_id"] == contractor_id]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)


class FakeChatRepository(_FakeRepo):
    table_name = "messages"

    def list_for_tender(self, tender_id):
        with self.store.lock:
            rows = [dict(r) for r in self.store.messages.values() if r["tender_id"] == tender_id]
        return sorted(rows, key=lambda r: (r["created_at"], r["id"]))


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tenders_repo(store):
    return FakeTendersRepository(store)


@pytest.fixture
def bids_repo(store):
    return FakeBidsRepository(store)


@pytest.fixture
def service(tenders_repo, bids_repo, clock):
    return TenderService(tenders_repo, bids_repo, clock=clock)


@pytest.fixture
def chat_service(store, tenders_repo, clock):
    return ChatService(FakeChatRepository(store), tenders_repo, clock=clock)


@pytest.fixture
def client_user():
    return CurrentUser(user_id="client-1", display_name="Asha")


@pytest.fixture
def contractor_a():
    return CurrentUser(user_id="contractor-a", display_name="Ravi Builders")


@pytest.fixture
def contractor_b():
    return CurrentUser(user_id="contractor-b", display_name="Meera Works")


@pytest.fixture
def tender_payload():
    return {
        "title": "Roof repair",
        "description": "Fix leaking roof over the kitchen",
        "location": "Pune",
        "regulatory_id": "PMC-2026-001",
        "disclaimer_accepted": True,
    }


def money(value) -> Decimal:
    return Decimal(str(value))
