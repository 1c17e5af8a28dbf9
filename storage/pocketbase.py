from __future__ import annotations
import logging
import requests
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from core.exceptions import AuthError, NotFoundError, PBError

logger = logging.getLogger(__name__)

Filters = Union[Mapping[str, Any], Sequence[Tuple[str, str, Any]], None]

_OPERATORS = ("=", "!=", ">", ">=", "<", "<=", "~")


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def build_filter(filters: Filters) -> str:
    """Arma la expresión `filter` de PocketBase.

    `filters` puede ser un dict (igualdad, unidas con &&) o una lista de
    tuplas (campo, operador, valor).
    """
    if not filters:
        return ""
    if isinstance(filters, Mapping):
        triples: Iterable[Tuple[str, str, Any]] = [(k, "=", v) for k, v in filters.items()]
    else:
        triples = filters
    parts = []
    for field, op, value in triples:
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op!r}")
        parts.append(f"{field} {op} {_literal(value)}")
    return " && ".join(parts)


def _id_only(filters: Filters) -> Optional[str]:
    if isinstance(filters, Mapping) and set(filters) == {"id"} and filters["id"]:
        return str(filters["id"])
    return None


class PocketBaseClient:
    """Cliente mínimo de registros PocketBase: auth + CRUD con filtros."""
    def __init__(self, base_url: str, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.token: Optional[str] = ""
        self.user_id: Optional[str] = ""

    # ---------- http ----------
    def _records_url(self, collection: str, record_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/api/collections/{collection}/records"
        return f"{url}/{record_id}" if record_id else url

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise PBError(f"{method} {url} failed: {e}") from e
        if r.status_code == 404:
            raise NotFoundError(r.text, status=404)
        if not r.ok:
            raise PBError(f"{method} {url}: {r.status_code} {r.text}", status=r.status_code)
        return r

    @staticmethod
    def _json(r: requests.Response) -> Any:
        # un 2xx con HTML (proxy, portal cautivo) también es un fallo remoto
        try:
            return r.json()
        except ValueError as e:
            raise PBError(f"Invalid JSON response: {e}", status=r.status_code) from e

    # ---------- auth ----------
    def login(self, identity: str, password: str) -> bool:
        """identity puede ser email o username."""
        url = f"{self.base_url}/api/collections/users/auth-with-password"
        try:
            r = self.session.post(url, json={"identity": identity, "password": password}, timeout=self.timeout)
        except requests.RequestException as e:
            raise PBError(f"Login failed: {e}") from e
        if not r.ok:
            raise AuthError(f"Login failed: {r.status_code} {r.text}", status=r.status_code)
        data = self._json(r)
        self.token = data.get("token")
        self.user_id = data.get("record", {}).get("id")
        if not self.token or not self.user_id:
            raise AuthError("Missing token or user id in login response")
        self.session.headers.update({"Authorization": f"Bearer {self.token}"})
        logger.info("Logged in as %s", self.user_id)
        return True

    def logout(self):
        self.token = ""
        self.user_id = ""
        self.session.headers.pop("Authorization", None)

    def get_current_user(self) -> Optional[str]:
        return self.user_id or None

    def fork(self) -> "PocketBaseClient":
        """Copia autenticada con su propia Session, para usar desde otro hilo."""
        other = PocketBaseClient(self.base_url, timeout=self.timeout)
        other.token = self.token
        other.user_id = self.user_id
        if self.token:
            other.session.headers.update({"Authorization": f"Bearer {self.token}"})
        return other

    # ---------- records ----------
    def select_one(self, collection: str, filters: Filters) -> Optional[Dict[str, Any]]:
        record_id = _id_only(filters)
        if record_id:
            try:
                return self._json(self._request("GET", self._records_url(collection, record_id)))
            except NotFoundError:
                return None
        items = self.select_many(collection, filters, per_page=1, max_pages=1)
        return items[0] if items else None

    def select_many(self, collection: str, filters: Filters = None, sort: Optional[str] = None,
                    per_page: int = 500, max_pages: Optional[int] = None) -> List[Dict[str, Any]]:
        """Recorre todas las páginas (hasta `max_pages` si se indica)."""
        params: Dict[str, Any] = {"page": 1, "perPage": per_page}
        filt = build_filter(filters)
        if filt:
            params["filter"] = filt
        if sort:
            params["sort"] = sort
        items: List[Dict[str, Any]] = []
        while True:
            data = self._json(self._request("GET", self._records_url(collection), params=dict(params)))
            items.extend(data.get("items", []))
            total_pages = data.get("totalPages") or 1
            if params["page"] >= total_pages or (max_pages and params["page"] >= max_pages):
                return items
            params["page"] += 1

    def insert(self, collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._json(self._request("POST", self._records_url(collection), json=fields))

    def update(self, collection: str, filters: Filters, fields: Dict[str, Any]) -> None:
        record_id = _id_only(filters)
        ids = [record_id] if record_id else [rec["id"] for rec in self.select_many(collection, filters)]
        for rid in ids:
            self._request("PATCH", self._records_url(collection, rid), json=fields)

    def delete(self, collection: str, filters: Filters) -> None:
        record_id = _id_only(filters)
        ids = [record_id] if record_id else [rec["id"] for rec in self.select_many(collection, filters)]
        for rid in ids:
            try:
                self._request("DELETE", self._records_url(collection, rid))
            except NotFoundError:
                # ya no existe: el resultado es el mismo
                logger.debug("delete %s/%s: already gone", collection, rid)
