#!/usr/bin/env python3
"""
Atlas Board Server
------------------
JSON API over the Atlas storage region. Every request opens its own context
(load → act → save) on the configured storage, so the server and any other
process sharing the SQLite file see each other's writes.
Contexts are serialized: each collection save rewrites the whole region,
so two overlapping requests would otherwise drop one another's edits.

Usage:
    python atlas_server.py --port 3000 --db ~/.local/share/atlas/atlas.db

API:
    GET    /api/board?project=&priority=  → columns with cards and counts
    GET    /api/tasks                     → { tasks, count }
    GET    /api/tasks/resolve?q=          → resolution by id, title or fuzzy name
    GET    /api/tasks/<id>                → { task }
    POST   /api/tasks                     → create; body: task fields (+ status)
    PUT    /api/tasks/<id>                → edit; body: task fields
    POST   /api/tasks/<id>/move           → body: { status }
    DELETE /api/tasks/<id>                → body: { confirm: true }
    GET    /api/projects                  → { projects }
    POST   /api/projects                  → create; body: project fields
    GET    /api/events?date=&project=     → { events }
    GET    /api/calendar?year=&month=&project= → month grid with events per day
    POST   /api/events                    → create; body: event fields
    GET    /api/documents                 → { documents }
    GET    /health
"""

import argparse
import logging
import os
import sys
import threading
from contextlib import contextmanager
from typing import Optional

from flask import Flask, jsonify, request

from atlas.app import AtlasApp, normalize_priority_filter, normalize_project_filter
from atlas.config import AtlasConfig
from atlas.forms import ValidationError, validate_event, validate_project, validate_status, validate_task
from atlas.schema import TaskStatus
from atlas.storage import open_storage

logger = logging.getLogger("atlas.server")

_session_lock = threading.Lock()


def _validation_error(e: ValidationError):
    return jsonify({"error": "validation failed", "fields": e.errors}), 400


def _task_not_found():
    return jsonify({"error": "Task not found"}), 404


def _json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def create_app(config: Optional[AtlasConfig] = None) -> Flask:
    """Build the Flask app bound to one storage region."""
    config = config or AtlasConfig.load()
    storage = open_storage(config.storage_backend, config.db_path)

    app = Flask(__name__)
    app.config["ATLAS"] = config

    @contextmanager
    def session():
        with _session_lock:
            ctx = AtlasApp(storage, page="kanban", config=config)
            try:
                yield ctx
            finally:
                ctx.close()

    # ── Board & tasks ────────────────────────────────────────────────────────

    @app.route("/api/board")
    def api_board():
        with session() as ctx:
            ctx.board.set_filters(
                project=normalize_project_filter(request.args.get("project")),
                priority=normalize_priority_filter(request.args.get("priority")),
            )
            counts = ctx.board.counts()
            columns = [
                {
                    "status": status.value,
                    "label": status.label,
                    "count": counts[status],
                    "tasks": [t.to_dict() for t in ctx.board.column_tasks(status)],
                }
                for status in TaskStatus
            ]
            return jsonify({
                "columns": columns,
                "filters": {"project": ctx.board.project_filter, "priority": ctx.board.priority_filter},
                "projects": [p.to_dict() for p in ctx.store.projects],
            })

    @app.route("/api/tasks", methods=["GET"])
    def api_tasks():
        with session() as ctx:
            tasks = [t.to_dict() for t in ctx.store.tasks]
            return jsonify({"tasks": tasks, "count": len(tasks)})

    @app.route("/api/tasks/resolve")
    def api_resolve_task():
        with session() as ctx:
            resolution = ctx.resolver.resolve(request.args.get("q", ""))
            return jsonify({
                "query": resolution.query,
                "resolved": resolution.resolved,
                "match": resolution.match,
                "ambiguous": resolution.ambiguous,
                "candidates": list(resolution.candidates),
                "task": resolution.task.to_dict() if resolution.task else None,
            })

    @app.route("/api/tasks/<task_id>", methods=["GET"])
    def api_get_task(task_id):
        with session() as ctx:
            task = ctx.index.get(task_id)
            if task is None:
                return _task_not_found()
            return jsonify({"task": task.to_dict()})

    @app.route("/api/tasks", methods=["POST"])
    def api_create_task():
        data = _json_body()
        try:
            cleaned = validate_task(data)
        except ValidationError as e:
            return _validation_error(e)
        with session() as ctx:
            task = ctx.create_task(cleaned)
            return jsonify({"task": task.to_dict(), "id": task.id}), 201

    @app.route("/api/tasks/<task_id>", methods=["PUT"])
    def api_update_task(task_id):
        data = _json_body()
        with session() as ctx:
            task = ctx.index.get(task_id)
            if task is None:
                return _task_not_found()
            # partial bodies keep the fields they leave out
            merged = task.to_dict()
            merged.pop("status", None)
            merged.pop("dueDate", None)
            merged.update(data)
            if "due_date" not in merged and "dueDate" not in merged:
                merged["due_date"] = task.due_date
            try:
                cleaned = validate_task(merged)
            except ValidationError as e:
                return _validation_error(e)
            task = ctx.apply_task_edit(task_id, cleaned)
            return jsonify({"task": task.to_dict()})

    @app.route("/api/tasks/<task_id>/move", methods=["POST"])
    def api_move_task(task_id):
        data = _json_body()
        try:
            status = validate_status(data)
        except ValidationError as e:
            return _validation_error(e)
        with session() as ctx:
            task = ctx.index.get(task_id)
            if task is None:
                return _task_not_found()
            moved = ctx.move_task(task_id, status) is not None
            return jsonify({"task": task.to_dict(), "moved": moved})

    @app.route("/api/tasks/<task_id>", methods=["DELETE"])
    def api_delete_task(task_id):
        data = _json_body()
        confirmed = data.get("confirm") is True or request.args.get("confirm") == "true"
        with session() as ctx:
            if ctx.index.get(task_id) is None:
                return _task_not_found()
            if not confirmed:
                return jsonify({"error": "Deleting a task requires confirm: true"}), 409
            ctx.remove_task(task_id)
            return jsonify({"deleted": task_id})

    # ── Projects, events, documents ──────────────────────────────────────────

    @app.route("/api/projects", methods=["GET"])
    def api_projects():
        with session() as ctx:
            return jsonify({"projects": [p.to_dict() for p in ctx.store.projects]})

    @app.route("/api/projects", methods=["POST"])
    def api_create_project():
        data = _json_body()
        try:
            cleaned = validate_project(data)
        except ValidationError as e:
            return _validation_error(e)
        with session() as ctx:
            project = ctx.create_project(cleaned)
            return jsonify({"project": project.to_dict(), "id": project.id}), 201

    @app.route("/api/events", methods=["GET"])
    def api_events():
        day = request.args.get("date")
        project = normalize_project_filter(request.args.get("project"))
        with session() as ctx:
            if day:
                events = ctx.store.events_on(day, project)
            else:
                events = [e for e in ctx.store.events if project == "all" or e.project == project]
            return jsonify({"events": [e.to_dict() for e in events]})

    @app.route("/api/calendar")
    def api_calendar():
        try:
            year = int(request.args["year"]) if "year" in request.args else None
            month = int(request.args["month"]) if "month" in request.args else None
        except ValueError:
            return jsonify({"error": "year and month must be integers"}), 400
        if month is not None and not 1 <= month <= 12:
            return jsonify({"error": "month must be 1-12"}), 400
        with session() as ctx:
            cal = ctx.calendar
            cal.year = year or cal.year
            cal.month = month or cal.month
            cal.filter_by_project(request.args.get("project"))
            return jsonify({
                "year": cal.year,
                "month": cal.month,
                "label": cal.month_label,
                "project": cal.project_filter,
                "leadingBlanks": cal.leading_blanks(),
                "meetings": cal.meeting_count(),
                "days": [
                    {"date": c.date, "day": c.day, "today": c.today,
                     "events": [e.to_dict() for e in c.events]}
                    for c in cal.grid()
                ],
            })

    @app.route("/api/events", methods=["POST"])
    def api_create_event():
        data = _json_body()
        try:
            cleaned = validate_event(data)
        except ValidationError as e:
            return _validation_error(e)
        with session() as ctx:
            event = ctx.create_event(cleaned)
            return jsonify({"event": event.to_dict(), "id": event.id}), 201

    @app.route("/api/documents")
    def api_documents():
        with session() as ctx:
            return jsonify({"documents": [d.to_dict() for d in ctx.store.documents]})

    @app.route("/health")
    def health():
        return jsonify({
            "status": "ok",
            "storage": config.storage_backend,
            "db": config.db_path if config.storage_backend == "sqlite" else None,
        })

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="Atlas Board Server")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to atlas.db (overrides ATLAS_DB env var)")
    parser.add_argument("--config", help="Path to atlas.yaml (overrides ATLAS_CONFIG env var)")
    args = parser.parse_args(argv)

    if args.db:
        os.environ["ATLAS_DB"] = args.db

    config = AtlasConfig.load(args.config)
    host = args.host or config.server_host
    port = args.port or config.server_port

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [atlas] %(levelname)s: %(message)s",
        stream=sys.stdout,
    )

    app = create_app(config)
    logger.info("Atlas board server on http://%s:%s (storage: %s %s)",
                host, port, config.storage_backend, config.db_path)
    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
