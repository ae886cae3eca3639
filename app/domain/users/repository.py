"""User repository - Database operations for users, experience answers and reviews"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import ExperienceAnswer, Review, User, UserFile, UserRole


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_user(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_for_update(db: Session, user_id: str) -> Optional[User]:
        return (
            db.query(User)
            .filter(User.id == user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def list_users(db: Session, role: Optional[UserRole] = None) -> list[User]:
        query = db.query(User).options(selectinload(User.experience_answers))
        if role is not None:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc(), User.id).all()

    @staticmethod
    def replace_experience_answers(db: Session, user: User, answers: list[dict]) -> None:
        """Experience answers are replaced wholesale on every edit"""
        user.experience_answers.clear()
        db.flush()
        for answer in answers:
            user.experience_answers.append(
                ExperienceAnswer(
                    question_id=answer["questionId"],
                    question=answer["question"],
                    answers=answer["answers"],
                )
            )

    @staticmethod
    def get_file(db: Session, file_id: str) -> Optional[UserFile]:
        return db.query(UserFile).filter(UserFile.id == file_id).first()

    @staticmethod
    def get_review(db: Session, job_id: str, reviewer_id: str) -> Optional[Review]:
        return (
            db.query(Review)
            .filter(Review.job_id == job_id, Review.reviewer_id == reviewer_id)
            .first()
        )

    @staticmethod
    def list_reviews_for(db: Session, reviewee_id: str) -> list[Review]:
        return (
            db.query(Review)
            .filter(Review.reviewee_id == reviewee_id)
            .order_by(Review.created_at.desc(), Review.id)
            .all()
        )
