import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///gameshow.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Frontend origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173'
    ).split(',') if o.strip()]
    # Singleton game_state row
    SESSION_ID = int(os.environ.get('SESSION_ID', '1'))
    # Scoring table: 'classic' (100/150/200/300) or 'high_stakes' (100/250/500/1000)
    POINTS_TABLE = os.environ.get('POINTS_TABLE', 'classic')
    # Settle delay after a reveal so the change feed can catch up (ms). 0 disables.
    SYNC_DELAY_MS = int(os.environ.get('SYNC_DELAY_MS', '300'))
    # Display countdown per question (seconds)
    QUESTION_TIMER_SEC = int(os.environ.get('QUESTION_TIMER_SEC', '30'))
