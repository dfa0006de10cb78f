import os

from waitress import serve
from ithub.app import create_app
from ithub.app.database import seed_admin

app = create_app()

# Make sure there is an account to log in with
with app.app_context():
    seed_admin()

serve(app, host=os.environ.get('HOST', '0.0.0.0'), port=int(os.environ.get('PORT', 5000)))
