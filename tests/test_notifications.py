"""Tests for Discord DM delivery and the embed builders."""

from types import SimpleNamespace

import discord
import pytest

from foosbot.data_models.leaderboard import RankedEntry, SeasonLeaderboard
from foosbot.data_models.season import TransitionResult
from foosbot.services.notifications import MAX_MESSAGE_LENGTH, DiscordNotifier
from foosbot.utils.embeds import build_season_leaderboard_embed, build_transition_embed
from foosbot.utils.error_embeds import ErrorEmbeds
from foosbot.utils.exceptions import NotificationDeliveryError, PlayerNotFoundError, ValidationError


class FakeUser:
    def __init__(self, error=None):
        self.messages = []
        self.error = error

    async def send(self, text):
        if self.error:
            raise self.error
        self.messages.append(text)


class FakeBot:
    """Only the user lookups the notifier relies on."""

    def __init__(self, users):
        self.users = users
        self.fetched = []

    def get_user(self, user_id):
        return None

    async def fetch_user(self, user_id):
        self.fetched.append(user_id)
        if user_id not in self.users:
            raise discord.NotFound(SimpleNamespace(status=404, reason='Not Found'), 'Unknown User')
        return self.users[user_id]


class TestDiscordNotifier:

    async def test_delivers_dm(self):
        user = FakeUser()
        notifier = DiscordNotifier(FakeBot({42: user}))

        await notifier.send_message(42, "Season over")

        assert user.messages == ["Season over"]

    async def test_long_message_truncated(self):
        user = FakeUser()
        notifier = DiscordNotifier(FakeBot({42: user}))

        await notifier.send_message(42, "x" * (MAX_MESSAGE_LENGTH + 50))

        assert len(user.messages[0]) == MAX_MESSAGE_LENGTH

    async def test_closed_dms_raise_delivery_error(self):
        forbidden = discord.Forbidden(SimpleNamespace(status=403, reason='Forbidden'), 'Cannot send messages to this user')
        notifier = DiscordNotifier(FakeBot({42: FakeUser(error=forbidden)}))

        with pytest.raises(NotificationDeliveryError) as exc_info:
            await notifier.send_message(42, "hi")
        assert exc_info.value.chat_id == 42

    async def test_unknown_user_raises_delivery_error(self):
        notifier = DiscordNotifier(FakeBot({}))
        with pytest.raises(NotificationDeliveryError):
            await notifier.send_message(7, "hi")


class TestEmbeds:

    def test_empty_season_leaderboard(self):
        embed = build_season_leaderboard_embed(SeasonLeaderboard(season='2024-01'))
        assert "2024-01" in embed.title
        assert "No matches" in embed.description
        assert len(embed.fields) == 0

    def test_season_leaderboard_fields(self):
        summary = [RankedEntry(rank=1, player_id=1, username='alice', display_name='Alice', value=15, points=15)]
        categories = {
            'elo_gains': [RankedEntry(rank=1, player_id=1, username='alice', display_name='Alice', value=16, points=3)],
            'matches_played': [],
            'dry_wins': [],
            'total_wins': [],
            'longest_streak': [],
        }
        embed = build_season_leaderboard_embed(SeasonLeaderboard('2024-01', summary, categories))
        assert "Alice" in embed.description
        assert [field.name for field in embed.fields] == ['📈 Elo Gains']

    def test_failed_transition_embed(self):
        result = TransitionResult(run_id='abc', trigger='manual', previous_season='2024-01',
                                  new_season='2024-02', error='boom')
        embed = build_transition_embed(result)
        assert "Failed" in embed.title
        assert "boom" in embed.description

    def test_error_embed_mapping(self):
        assert ErrorEmbeds.from_exception(PlayerNotFoundError('zoe')).title == "Player Not Found"
        assert ErrorEmbeds.from_exception(ValidationError("bad")).title == "Invalid Input"
