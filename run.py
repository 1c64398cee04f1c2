"""Development server for the client ledger; serve ``wsgi:app`` in production."""

from ledger import create_app, db

app = create_app()

if __name__ == "__main__":
    # Local runs only; deployed databases are migrated with Flask-Migrate
    with app.app_context():
        db.create_all()
    app.run(host="0.0.0.0", port=5000, debug=True)
