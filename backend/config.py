import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///courtside.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Where the ball goes after a missed shot goes out of bounds: 'retain' or 'opponent'
    OUT_OF_BOUNDS_POSSESSION = os.environ.get('OUT_OF_BOUNDS_POSSESSION', 'retain')
    # Reject events whose game clock is earlier than the last accepted event
    ENFORCE_MONOTONIC_CLOCK = os.environ.get('ENFORCE_MONOTONIC_CLOCK', '0') == '1'
    MAX_PLAYERS_PER_TEAM = int(os.environ.get('MAX_PLAYERS_PER_TEAM', '15'))
