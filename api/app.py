"""Flask REST API exposing the ledger services."""

from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from ledger import build_services
from ledger.exceptions import (
    InsufficientFundsError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from ledger.models import Transaction
from ledger.storage import JSONStorage


def create_app(data_dir: Optional[Path] = None) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("LEDGER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("LEDGER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    storage = JSONStorage(Path(data_dir or os.getenv("LEDGER_DATA_DIR", "data")))
    category_service, transaction_service, import_service = build_services(storage)

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(InsufficientFundsError)
    def handle_insufficient_funds(exc: InsufficientFundsError):
        return _handle_error(exc, 400, "Insufficient funds")

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _serialize(transaction: Transaction) -> Dict[str, Any]:
        payload = transaction.to_dict()
        payload["category"] = category_service.get(transaction.category_id).to_dict()
        return payload

    @app.get("/transactions")
    def list_transactions():
        transactions = transaction_service.list()
        return _success({
            "transactions": [_serialize(transaction) for transaction in transactions],
            "balance": transaction_service.balance().to_dict(),
        })

    @app.post("/transactions")
    def create_transaction():
        payload = _json_body()
        transaction = transaction_service.create(payload)
        return _success(_serialize(transaction), 201)

    @app.delete("/transactions/<transaction_id>")
    def delete_transaction(transaction_id: str):
        transaction_service.delete(transaction_id)
        return _success({}, 204)

    @app.post("/transactions/import")
    def import_transactions():
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("Multipart field 'file' is required")
        try:
            text = upload.read().decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ValidationError("Uploaded file must be UTF-8 encoded CSV") from exc
        transactions = import_service.import_csv(io.StringIO(text, newline=""))
        return _success({"items": [_serialize(transaction) for transaction in transactions]}, 201)

    @app.get("/balance")
    def balance():
        return _success(transaction_service.balance().to_dict())

    @app.get("/categories")
    def list_categories():
        categories = category_service.list()
        return _success({"items": [category.to_dict() for category in categories]})

    return app
