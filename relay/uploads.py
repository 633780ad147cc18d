# ============================================
#     RoomRelay — File upload + static client
# ============================================

import os

from flask import current_app, jsonify, request, send_from_directory
from werkzeug.utils import secure_filename

from relay.logger import log_info, log_warning


def register_upload_routes(app):
    """
    POST /upload          → store one file, return {filename, path}
    GET  /uploads/<name>  → serve a stored file
    GET  /                → client bundle (index.html in STATIC_DIR)

    Size cap comes from app.config["MAX_CONTENT_LENGTH"] (413 when exceeded).
    """

    @app.route("/")
    def index():
        return send_from_directory(app.static_folder, "index.html")

    @app.route("/upload", methods=["POST"])
    def upload_file():
        file = request.files.get("file")
        if file is None or not file.filename:
            log_warning("uploads", "Upload rejected: no file in request.")
            return "No file uploaded.", 400

        filename = secure_filename(file.filename)
        if not filename:
            log_warning("uploads", f"Upload rejected: unusable filename {file.filename!r}.")
            return "No file uploaded.", 400

        upload_dir = current_app.config["UPLOAD_DIR"]
        os.makedirs(upload_dir, exist_ok=True)

        # Same name overwrites the previous upload
        file.save(os.path.join(upload_dir, filename))

        log_info("uploads", f"Stored upload: {filename}")
        return jsonify({"filename": filename, "path": f"/uploads/{filename}"})

    @app.route("/uploads/<path:filename>")
    def uploaded_file(filename):
        return send_from_directory(current_app.config["UPLOAD_DIR"], filename)
