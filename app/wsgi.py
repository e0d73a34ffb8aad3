from app.bikeshop import create_app

app = create_app()


if __name__ == "__main__":
    # Development server; production runs gunicorn via scripts/start.py
    app.run(host="0.0.0.0", port=app.config["PORT"])
