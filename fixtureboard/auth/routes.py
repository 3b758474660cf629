"""Routes for the auth blueprint."""

from firebase_admin import auth, firestore
from flask import current_app, jsonify, request, session

from fixtureboard.core.constants import USERS_COLLECTION

from . import bp


@bp.route("/session_login", methods=["POST"])
def session_login():
    """
    This endpoint is called from the client-side after a successful Firebase login.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    id_token = (request.get_json(silent=True) or {}).get("idToken")
    if not id_token:
        return jsonify({"status": "error", "message": "Missing ID token."}), 400
    try:
        decoded_token = auth.verify_id_token(id_token)
        uid = decoded_token["uid"]
        db = firestore.client()
        user_doc = db.collection(USERS_COLLECTION).document(uid).get()
        if user_doc.exists:
            user_info = user_doc.to_dict() or {}
            session["user_id"] = uid
            session["is_super_admin"] = bool(user_info.get("isSuperAdmin", False))
            session["is_team_admin"] = bool(user_info.get("isTeamAdmin", False))
            return jsonify({"status": "success"})
        else:
            return (
                jsonify(
                    {"status": "error", "message": "User not found in Firestore."}
                ),
                404,
            )
    except Exception as e:
        current_app.logger.error(f"Error during session login: {e}")
        return (
            jsonify({"status": "error", "message": "Invalid token or server error."}),
            401,
        )


@bp.route("/logout", methods=["POST"])
def logout():
    """Clear the server-side session; the Firebase client SDK signs out itself."""
    session.clear()
    return jsonify({"status": "success"})
