# ==== pb_bootstrap.py (script AUTÓNOMO) ====
# Crea/actualiza las colecciones categories, todos y todo_links en PocketBase usando Admin API.
# Credenciales de admin: config.yaml (admin_email / admin_password) o PB_TODO_ADMIN_EMAIL / PB_TODO_ADMIN_PASSWORD.
# Ejecutar con:  python pb_bootstrap.py

import logging
import sys
import requests

from core.config import ADMIN_EMAIL, ADMIN_PASSWORD, BASE_URL

logger = logging.getLogger("pb_bootstrap")

OWNER_RULES = {
    "listRule": "user_id = @request.auth.id",
    "viewRule": "user_id = @request.auth.id",
    "createRule": "@request.auth.id != ''",
    "updateRule": "user_id = @request.auth.id",
    "deleteRule": "user_id = @request.auth.id",
}


def die(msg):
    logger.error(msg)
    sys.exit(1)


class PBAdmin:
    def __init__(self, base):
        self.base = base.rstrip('/')
        self.s = requests.Session()

    def admin_login(self, email, password):
        r = self.s.post(f"{self.base}/api/admins/auth-with-password", json={
            "identity": email,
            "password": password
        }, timeout=15)
        if not r.ok:
            die(f"[LOGIN] {r.status_code}: {r.text}")
        tok = r.json().get("token")
        if not tok:
            die("[LOGIN] token faltante")
        self.s.headers.update({"Authorization": f"Bearer {tok}"})
        logger.info("Admin login OK")

    def get_collection(self, name_or_id):
        r = self.s.get(f"{self.base}/api/collections/{name_or_id}", timeout=15)
        if r.status_code == 404:
            return None
        if not r.ok:
            die(f"[GET {name_or_id}] {r.status_code}: {r.text}")
        return r.json()

    def create_collection(self, payload):
        r = self.s.post(f"{self.base}/api/collections", json=payload, timeout=20)
        if not r.ok:
            die(f"[CREATE {payload.get('name')}] {r.status_code}: {r.text}")
        return r.json()

    def update_collection(self, id_or_name, payload):
        r = self.s.patch(f"{self.base}/api/collections/{id_or_name}", json=payload, timeout=20)
        if not r.ok:
            die(f"[UPDATE {id_or_name}] {r.status_code}: {r.text}")
        return r.json()


def _owner_field():
    return {"name": "user_id", "type": "relation", "required": True,
            "options": {"collectionId": "_pb_users_auth_", "cascadeDelete": True, "maxSelect": 1}}


def spec_categories():
    return {
        "name": "categories",
        "type": "base",
        "schema": [
            {"name": "name", "type": "text", "required": True, "options": {"min": 1, "max": 120}},
            {"name": "color", "type": "text", "required": False, "options": {"pattern": "^#?[0-9A-Fa-f]{3,8}$"}},
            _owner_field(),
        ],
        "indexes": [
            "CREATE INDEX idx_categories_owner ON categories (user_id, created)"
        ],
        **OWNER_RULES,
    }


def spec_todos(categories_id: str):
    return {
        "name": "todos",
        "type": "base",
        "schema": [
            {"name": "title", "type": "text", "required": True, "options": {"min": 1, "max": 200}},
            {"name": "description", "type": "text", "required": False, "options": {"max": 5000}},
            {"name": "status", "type": "select", "required": True,
             "options": {"maxSelect": 1, "values": ["pending", "in_progress", "completed"]}},
            {"name": "priority", "type": "select", "required": False,
             "options": {"maxSelect": 1, "values": ["low", "medium", "high"]}},
            {"name": "category_id", "type": "relation", "required": False,
             "options": {"collectionId": categories_id, "cascadeDelete": True, "maxSelect": 1}},
            _owner_field(),
            # YYYY-MM-DD como texto: la comparación por rango es lexicográfica
            {"name": "scheduled_date", "type": "text", "required": False,
             "options": {"pattern": "^\\d{4}-\\d{2}-\\d{2}$"}},
            {"name": "start_time", "type": "date", "required": False, "options": {}},
            {"name": "due_time", "type": "date", "required": False, "options": {}},
            {"name": "completed_at", "type": "date", "required": False, "options": {}},
            {"name": "timing_result", "type": "select", "required": False,
             "options": {"maxSelect": 1, "values": ["early", "on_time", "late", "not_completed"]}},
            {"name": "timer_preset_minutes", "type": "number", "required": False, "options": {"min": 0}},
            {"name": "timer_custom_seconds", "type": "number", "required": False, "options": {"min": 0}},
            {"name": "timer_sound", "type": "text", "required": False, "options": {"max": 50}},
            {"name": "notes_canvas", "type": "json", "required": False, "options": {"maxSize": 20_000_000}},
        ],
        "indexes": [
            "CREATE INDEX idx_todos_owner_date ON todos (user_id, scheduled_date)",
            "CREATE INDEX idx_todos_owner_category ON todos (user_id, category_id)",
        ],
        **OWNER_RULES,
    }


def spec_todo_links(todos_id: str):
    return {
        "name": "todo_links",
        "type": "base",
        "schema": [
            {"name": "todo_id", "type": "relation", "required": True,
             "options": {"collectionId": todos_id, "cascadeDelete": True, "maxSelect": 1}},
            _owner_field(),
            {"name": "label", "type": "text", "required": True, "options": {"min": 1, "max": 200}},
            {"name": "url", "type": "url", "required": True, "options": {}},
            {"name": "type", "type": "select", "required": True,
             "options": {"maxSelect": 1, "values": ["website", "youtube", "other"]}},
        ],
        "indexes": [
            "CREATE INDEX idx_links_todo ON todo_links (todo_id, created)"
        ],
        **OWNER_RULES,
    }


def upsert_collection(pb: PBAdmin, spec: dict):
    existing = pb.get_collection(spec["name"])
    if not existing:
        return pb.create_collection(spec)
    cid = existing.get("id") or spec["name"]
    # Asegura que el nombre permanezca igual para patch por id
    spec_with_id_name = spec.copy()
    spec_with_id_name["id"] = cid
    spec_with_id_name["name"] = existing["name"]
    return pb.update_collection(cid, spec_with_id_name)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    if not ADMIN_EMAIL or not ADMIN_PASSWORD:
        die("Faltan admin_email / admin_password en config.yaml o PB_TODO_ADMIN_*")
    pb = PBAdmin(BASE_URL)
    pb.admin_login(ADMIN_EMAIL, ADMIN_PASSWORD)

    categories = upsert_collection(pb, spec_categories())
    logger.info("OK: categories %s", categories.get("id"))

    todos = upsert_collection(pb, spec_todos(categories.get("id")))
    logger.info("OK: todos %s", todos.get("id"))

    links = upsert_collection(pb, spec_todo_links(todos.get("id")))
    logger.info("OK: todo_links %s", links.get("id"))

    logger.info("Bootstrap completo.")


if __name__ == "__main__":
    main()
