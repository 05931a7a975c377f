"""Run the sync server: ``python -m markbook.server``."""

from markbook.server import create_app, log_endpoints

app = create_app()

if __name__ == "__main__":
    log_endpoints(app)
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=app.config.get("DEBUG", False))
