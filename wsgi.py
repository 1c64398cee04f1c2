# wsgi.py (at repo root)
from ledger import create_app

app = create_app()
