from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from .balances import get_strategy, summarize_group
from .config import config
from .errors import ConservationViolation, InvalidSplitError
from .models import SPLIT_MODES
from .money import to_decimal
from .repository import MySQLRepository, Repository
from .splits import compute_shares

logger = logging.getLogger(__name__)


def create_app(repository: Optional[Repository] = None) -> Flask:
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.SECRET_KEY
    logging.getLogger("groupsplit").setLevel(config.LOG_LEVEL)

    CORS(app, resources={r"/api/*": {"origins": config.CORS_ORIGINS}})

    register_routes(app, repository or MySQLRepository())
    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(InvalidSplitError)
    def invalid_split(exc: InvalidSplitError):
        logger.info("Rejected split: %s %s", exc.code, exc.detail)
        return jsonify({"error": exc.code}), 400

    @app.errorhandler(ConservationViolation)
    def conservation_violation(exc: ConservationViolation):
        return jsonify({"error": "conservation_violation", "total": float(exc.total)}), 500


def register_routes(app: Flask, repository: Repository) -> None:
    @app.get("/api")
    def health_check():
        return jsonify({"status": "healthy"})

    @app.post("/api/groups")
    def create_group():
        payload = request.get_json(force=True) or {}
        name = (payload.get("group_name") or "").strip()

        if not name:
            return jsonify({"error": "missing_group_name"}), 400

        group_id = repository.create_group(name)
        return jsonify({"id": group_id, "group_name": name}), 201

    @app.get("/api/groups/<int:group_id>/members")
    def get_group_members(group_id: int):
        if not repository.group_exists(group_id):
            return jsonify({"error": "group_not_found"}), 404

        return jsonify([member.to_dict() for member in repository.list_members(group_id)])

    @app.post("/api/groups/<int:group_id>/members")
    def add_member(group_id: int):
        if not repository.group_exists(group_id):
            return jsonify({"error": "group_not_found"}), 404

        payload = request.get_json(force=True) or {}
        name = (payload.get("name") or "").strip()
        if not name:
            return jsonify({"error": "missing_fields"}), 400

        member_id = repository.add_member(group_id, name)
        return jsonify({"id": member_id, "group_id": group_id, "name": name}), 201

    @app.get("/api/groups/<int:group_id>/expenses")
    def get_group_expenses(group_id: int):
        if not repository.group_exists(group_id):
            return jsonify({"error": "group_not_found"}), 404

        return jsonify([expense.to_dict() for expense in repository.list_expenses(group_id)])

    @app.post("/api/groups/<int:group_id>/expenses")
    def add_expense(group_id: int):
        if not repository.group_exists(group_id):
            return jsonify({"error": "group_not_found"}), 404

        payload = request.get_json(force=True) or {}
        title = (payload.get("title") or "").strip()
        amount = payload.get("amount")
        paid_by = payload.get("paid_by")
        split_mode = payload.get("split_mode") or "equal"
        participants_payload = payload.get("participants") or []

        if not title or amount is None or paid_by is None:
            return jsonify({"error": "missing_fields"}), 400

        if not isinstance(amount, (int, float, str)) or isinstance(amount, bool):
            return jsonify({"error": "invalid_amount"}), 400

        if split_mode not in SPLIT_MODES:
            return jsonify({"error": "unknown_split_mode"}), 400

        try:
            amount_decimal = to_decimal(amount)
        except ValueError:
            return jsonify({"error": "invalid_amount"}), 400

        try:
            participants = _normalize_participants(participants_payload)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        member_ids = _member_ids(repository, group_id)
        if paid_by not in member_ids:
            return jsonify({"error": "payer_not_in_group"}), 400
        if not all(item["member_id"] in member_ids for item in participants):
            return jsonify({"error": "invalid_split_members"}), 400

        # Raises InvalidSplitError, reported by the error handler
        shares = compute_shares(amount_decimal, split_mode, participants)

        expense_id = repository.create_expense(group_id, title, paid_by, amount_decimal, split_mode, shares)
        logger.info(
            "Recorded expense %s in group %s: %s paid by %s, %s split across %d",
            expense_id,
            group_id,
            amount_decimal,
            paid_by,
            split_mode,
            len(shares),
        )
        return jsonify({"id": expense_id, "shares": [share.to_dict() for share in shares]}), 201

    @app.post("/api/groups/<int:group_id>/repayments")
    def record_repayment(group_id: int):
        if not repository.group_exists(group_id):
            return jsonify({"error": "group_not_found"}), 404

        payload = request.get_json(force=True) or {}
        from_member_id = payload.get("from_member_id")
        to_member_id = payload.get("to_member_id")
        amount = payload.get("amount")

        if from_member_id is None or to_member_id is None or amount is None:
            return jsonify({"error": "missing_fields"}), 400

        member_ids = _member_ids(repository, group_id)
        if from_member_id not in member_ids or to_member_id not in member_ids:
            return jsonify({"error": "member_not_in_group"}), 400
        if from_member_id == to_member_id:
            return jsonify({"error": "self_repayment"}), 400

        try:
            amount_decimal = to_decimal(amount)
        except ValueError:
            return jsonify({"error": "invalid_amount"}), 400
        if amount_decimal <= Decimal("0.00"):
            return jsonify({"error": "invalid_amount"}), 400

        repayment_id = repository.create_repayment(group_id, from_member_id, to_member_id, amount_decimal)
        logger.info(
            "Recorded repayment %s in group %s: %s from %s to %s",
            repayment_id,
            group_id,
            amount_decimal,
            from_member_id,
            to_member_id,
        )
        return jsonify({"id": repayment_id, "amount": float(amount_decimal)}), 201

    @app.get("/api/groups/<int:group_id>/balances")
    def get_group_balances(group_id: int):
        if not repository.group_exists(group_id):
            return jsonify({"error": "group_not_found"}), 404

        try:
            strategy = get_strategy(request.args.get("strategy") or config.BALANCE_STRATEGY)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        members = {member.id: member.name for member in repository.list_members(group_id)}
        expenses = repository.list_expenses(group_id)
        repayments = repository.list_repayments(group_id)

        try:
            summary = summarize_group(expenses, members, strategy, repayments)
        except ConservationViolation:
            logger.error("Balances for group %s do not sum to zero", group_id)
            raise
        return jsonify(summary)


def _member_ids(repository: Repository, group_id: int) -> set:
    return {member.id for member in repository.list_members(group_id)}


def _normalize_participants(payload: List[Any]) -> List[Dict[str, Any]]:
    participants: List[Dict[str, Any]] = []
    for item in payload:
        if not isinstance(item, dict):
            item = {"member_id": item}
        try:
            member_id = int(item["member_id"])
        except (KeyError, TypeError, ValueError):
            raise ValueError("invalid_participant") from None
        participants.append({**item, "member_id": member_id})
    return participants


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL)
    app.run(debug=True)
