import json

from flask import current_app

from tales import db
from tales.models import Gift, HostReply, Level
from tales.services.host import DEFAULT_RULES

DEFAULT_GIFTS = [
    {'name': 'Rose', 'icon': '🌹', 'rarity': 'common', 'value': 10},
    {'name': 'Tea Cup', 'icon': '☕', 'rarity': 'common', 'value': 5},
    {'name': 'Lucky Star', 'icon': '⭐', 'rarity': 'rare', 'value': 50},
    {'name': 'Crystal Heart', 'icon': '💎', 'rarity': 'epic', 'value': 250},
    {'name': 'Golden Key', 'icon': '🗝️', 'rarity': 'legendary', 'value': 500},
]

DEFAULT_LEVELS = [
    {'level_id': 1, 'title': "The Late Night Call",
     'description': "If James calls late and your mum asks where he's from?",
     'options': ["Kireka", "Mukono", "Nansana", "Kyengera"], 'correct': "D", 'unlocked': True},
    {'level_id': 2, 'title': "Who Is James?",
     'description': "Having overheard James, who is he to you?",
     'options': ["Znob", "😣", "Ask question", "Don't know"], 'correct': "A", 'unlocked': True},
    {'level_id': 3, 'title': "The Final Truth",
     'description': "The tale of A and -oo7...",
     'options': ["Accept", "Fight", "Walk", "Seek"], 'correct': "D", 'unlocked': True},
]


def seed_reference_data() -> dict:
    """Insert gifts, host replies and levels into whichever of those tables is empty."""
    created = {'gifts': 0, 'host_replies': 0, 'levels': 0}

    if Gift.query.count() == 0:
        for g in DEFAULT_GIFTS:
            db.session.add(Gift(**g))
        created['gifts'] = len(DEFAULT_GIFTS)

    if HostReply.query.count() == 0:
        for position, rule in enumerate(DEFAULT_RULES):
            db.session.add(HostReply(
                position=position,
                keyword=rule.keyword,
                response=rule.response,
                category=rule.category,
                emotion=rule.emotion,
                reward=rule.reward,
            ))
        created['host_replies'] = len(DEFAULT_RULES)

    if Level.query.count() == 0:
        for lv in DEFAULT_LEVELS:
            db.session.add(Level(
                level_id=lv['level_id'],
                title=lv['title'],
                description=lv['description'],
                options=json.dumps(lv['options']),
                correct=lv['correct'],
                unlocked=lv['unlocked'],
            ))
        created['levels'] = len(DEFAULT_LEVELS)

    db.session.commit()
    if any(created.values()):
        current_app.logger.info(f"[seed] {created}")
    return created
