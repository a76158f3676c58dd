"""
Acceso a tablas de Supabase dentro de un namespace (app_id).

Cada fila de tenders, bids y chat_messages lleva app_id; varios despliegues
comparten proyecto sin ver los datos del resto. Las subclases parten siempre de
_scoped() y nunca de la tabla sin filtrar.
"""

from typing import Any, Dict, List, Optional

from supabase import Client


class BaseTenantRepository:
    """
    Lecturas por clave, inserciones y llamadas RPC limitadas a un app_id.

    Las escrituras de varias filas (adjudicar, pagar) no se hacen aquí fila a
    fila: van por call_function, que ejecuta una función SQL transaccional.
    """

    def __init__(
        self,
        client: Client,
        app_id: str,
        table_name: str,
        pk_column: str = "id",
    ) -> None:
        self._client = client
        self._app_id = str(app_id)
        self._table_name = table_name
        self._pk_column = pk_column

    @property
    def app_id(self) -> str:
        return self._app_id

    def _table(self):
        return self._client.table(self._table_name)

    def _scoped(self, select: str = "*"):
        """SELECT sobre la tabla ya filtrado por app_id."""
        return self._table().select(select).eq("app_id", self._app_id)

    def get_by_id(
        self,
        pk_value: Any,
        select: str = "*",
        pk_column: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Fila con esa clave en este app_id, o None."""
        rows = (
            self._scoped(select)
            .eq(pk_column or self._pk_column, pk_value)
            .limit(1)
            .execute()
            .data
        )
        return rows[0] if rows else None

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Inserta y devuelve la fila creada. La clave la genera Postgres y el
        app_id del payload se ignora: manda el del repositorio.
        """
        payload = {k: v for k, v in data.items() if k != self._pk_column}
        payload["app_id"] = self._app_id
        rows = self._table().insert(payload).execute().data
        if not rows:
            raise RuntimeError(f"El insert en {self._table_name} no devolvió la fila creada.")
        return rows[0] if isinstance(rows, list) else rows

    def call_function(self, name: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Ejecuta la función SQL `name` con p_app_id añadido. Todas sus
        escrituras se aplican en una transacción o ninguna.
        """
        data = self._client.rpc(name, {**params, "p_app_id": self._app_id}).execute().data
        if not data:
            return []
        return data if isinstance(data, list) else [data]
