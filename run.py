import os

from fitstudio import create_app, socketio
from fitstudio.config import DevelopmentConfig, ProductionConfig

config_class = ProductionConfig if os.environ.get('FLASK_ENV') == 'production' else DevelopmentConfig
app = create_app(config_class)

if __name__ == "__main__":
    socketio.run(app, host="0.0.0.0", port=int(os.environ.get('PORT', 5000)))
