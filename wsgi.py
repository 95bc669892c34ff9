"""
WSGI entry point
"""
import os

from labdesk import create_app

app = create_app(os.environ.get('FLASK_CONFIG', 'production'))

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
