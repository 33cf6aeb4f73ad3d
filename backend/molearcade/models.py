from datetime import datetime

from molearcade import db


class ScoreSubmission(db.Model):
    """Final score of one finished whack session."""
    __tablename__ = 'score_submission'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.String(64), nullable=False, index=True)
    play_code = db.Column(db.String(8), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    time_remaining = db.Column(db.Integer, nullable=False, default=0)
    level = db.Column(db.Integer, nullable=False, default=1)
    outcome = db.Column(db.String(16), nullable=False)  # game_over, victory
    nightmare = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'play_code': self.play_code,
            'score': self.score,
            'time_remaining': self.time_remaining,
            'level': self.level,
            'outcome': self.outcome,
            'nightmare': self.nightmare,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
