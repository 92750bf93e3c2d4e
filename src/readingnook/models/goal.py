from sqlalchemy import Column, Integer, String, CheckConstraint, UniqueConstraint
from readingnook.db.session import Base


class MonthlyGoal(Base):
    """Number of books a user plans to finish in a given calendar month."""
    __tablename__ = "monthly_goals"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    target = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint('target >= 0', name='monthly_goal_target_check'),
        CheckConstraint('month >= 1 AND month <= 12', name='monthly_goal_month_check'),
        UniqueConstraint('user_id', 'year', 'month', name='uq_user_year_month_goal'),
    )

    def __repr__(self):
        return f"<MonthlyGoal(user_id='{self.user_id}', {self.year}-{self.month:02d}, target={self.target})>"
