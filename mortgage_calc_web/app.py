import os
from typing import Optional

from flask import Flask, jsonify, request

from mortgage_calc.state import (
    analyze_state,
    monthly_payment_for,
    schedule_to_records,
    state_from_dict,
    summary_to_dict,
)
from mortgage_calc_web.kv_store import KeyValueStore, create_store_from_env


def create_app(store: Optional[KeyValueStore] = None) -> Flask:
    app = Flask(__name__)
    if store is None:
        store = create_store_from_env(os.environ.get("MORTGAGE_STATE_DATABASE_URL"))

    @app.get("/api/state/<key>")
    def get_state(key: str):
        return jsonify({"value": store.get(key)})

    @app.put("/api/state/<key>")
    def put_state(key: str):
        payload = request.get_json(silent=True)
        value = payload.get("value") if isinstance(payload, dict) else None
        if not isinstance(value, str):
            return jsonify({"error": "Request body must be a JSON object with a string 'value'"}), 400
        store.put(key, value)
        return jsonify({"success": True})

    @app.post("/api/analysis")
    def analysis():
        payload = request.get_json(silent=True)
        try:
            state = state_from_dict(payload)
        except ValueError as exc:
            app.logger.info("Rejected analysis request: %s", exc)
            return jsonify({"error": str(exc)}), 400

        results = analyze_state(state)
        return jsonify(
            {
                "monthlyPayment": monthly_payment_for(state),
                "scenarios": [
                    {
                        "id": result.scenario.id,
                        "name": result.scenario.name,
                        "summary": summary_to_dict(result.summary),
                        "schedule": schedule_to_records(result.schedule),
                    }
                    for result in results
                ],
            }
        )

    return app


if __name__ == "__main__":
    print("Starting Mortgage Calculator API...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
