import json

from sqlalchemy.orm import Session

from models import ProfileConfig
from schemas import ContactPreferences, ProfileConfigData


class ProfileConfigRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_user(self, user_id: int) -> ProfileConfig | None:
        return self.session.query(ProfileConfig).filter(ProfileConfig.user_id == user_id).first()

    def upsert(self, user_id: int, data: ProfileConfigData) -> ProfileConfig:
        config = self.get_by_user(user_id)
        if config is None:
            config = ProfileConfig(user_id=user_id)
            self.session.add(config)

        config.target_role = data.target_role
        config.skills_emphasis = json.dumps(data.skills_emphasis)
        config.tone_of_voice = data.tone_of_voice
        config.template_id = data.template_id
        config.contact_prefs = data.contact_prefs.model_dump_json()
        config.show_private_repos = data.show_private_repos
        self.session.commit()
        self.session.refresh(config)
        return config


def to_config_data(config: ProfileConfig) -> ProfileConfigData:
    """Decode the JSON columns of a stored config."""
    return ProfileConfigData(
        target_role=config.target_role or "",
        skills_emphasis=json.loads(config.skills_emphasis or "[]"),
        tone_of_voice=config.tone_of_voice or "professional",
        template_id=config.template_id or "hiring_manager_scan",
        contact_prefs=ContactPreferences(**json.loads(config.contact_prefs or "{}")),
        show_private_repos=bool(config.show_private_repos),
    )
