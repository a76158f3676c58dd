"""Comprobaciones sobre el SQL de la migración: orden de bloqueo, precondiciones y RLS."""

import re
from pathlib import Path

import pytest

MIGRATION = Path(__file__).resolve().parents[1] / "supabase" / "migrations" / "20260101000000_tenderbid.sql"


@pytest.fixture(scope="module")
def sql():
    return MIGRATION.read_text(encoding="utf-8")


def function_body(sql, name):
    match = re.search(
        rf"create or replace function public\.{name}\(.*?\$\$(.*?)\$\$;",
        sql,
        flags=re.DOTALL,
    )
    assert match, f"función {name} no encontrada"
    # Sin comentarios para que no cuenten como referencias a tablas
    return re.sub(r"--[^\n]*", "", match.group(1))


def statements(body):
    return [s.strip() for s in body.split(";") if s.strip()]


def first_index(stmts, predicate):
    return next(i for i, s in enumerate(stmts) if predicate(s))


class TestAwardBid:
    def test_bloquea_la_licitacion_antes_que_cualquier_oferta(self, sql):
        stmts = statements(function_body(sql, "award_bid"))
        lock_tender = first_index(
            stmts, lambda s: "from public.tenders" in s and s.rstrip().endswith("for update")
        )
        first_bid = first_index(stmts, lambda s: "public.bids" in s and "%rowtype" not in s)
        assert lock_tender < first_bid

    def test_bloqueo_de_licitacion_exige_abierta_y_propietario(self, sql):
        stmts = statements(function_body(sql, "award_bid"))
        lock_tender = next(s for s in stmts if "from public.tenders" in s and s.endswith("for update"))
        assert "status = 'Open'" in lock_tender
        assert "client_id = p_client_id" in lock_tender
        assert "app_id = p_app_id" in lock_tender

    def test_solo_oferta_pendiente_de_esa_licitacion(self, sql):
        stmts = statements(function_body(sql, "award_bid"))
        lock_bid = next(s for s in stmts if "from public.bids" in s and s.endswith("for update"))
        assert "status = 'pending'" in lock_bid
        assert "tender_id = p_tender_id" in lock_bid

    def test_rechaza_el_resto_de_pendientes(self, sql):
        body = function_body(sql, "award_bid")
        assert re.search(r"set status = 'Rejected'.*?id <> v_bid\.id.*?status = 'pending'", body, re.DOTALL)


class TestConfirmTenderPayment:
    def test_licitacion_antes_que_la_oferta(self, sql):
        stmts = statements(function_body(sql, "confirm_tender_payment"))
        tender = first_index(stmts, lambda s: "update public.tenders" in s)
        first_bid = first_index(stmts, lambda s: "public.bids" in s)
        assert tender < first_bid
        assert "status = 'Awarded'" in stmts[tender]


class TestPoliticaDeOfertas:
    @pytest.fixture
    def policy(self, sql):
        match = re.search(r"create policy bids_insert .*?\);\n", sql, flags=re.DOTALL)
        assert match
        return match.group(0)

    def test_comision_del_cinco_por_ciento(self, policy):
        assert "platform_fee = round(amount * 0.05, 2)" in policy
        assert "net_earnings = amount - platform_fee" in policy

    def test_solo_licitaciones_abiertas(self, policy):
        assert "from public.tenders" in policy
        assert "t.status = 'Open'" in policy
