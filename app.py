# Whisk & Willow contact API - WSGI entry point
# flask --app app run    or    gunicorn app:app

import atexit
import os

from whiskwillow import create_app
from whiskwillow.services import shutdown_services

app = create_app(os.environ.get('FLASK_CONFIG'))
atexit.register(shutdown_services, app)


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 3000)))
