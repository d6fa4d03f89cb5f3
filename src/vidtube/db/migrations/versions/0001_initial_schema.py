"""Initial schema: users, videos, tweets, comments, likes, subscriptions, playlists

Every owned table carries owner_id with ON DELETE CASCADE. Likes point at
exactly one of video / comment / tweet, and neither a like nor a
subscription can be duplicated. playlist_videos keeps insertion
order through its integer id and forbids duplicate entries.

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]
    if with_updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True)
        )
    return columns


def _owner(column: str = 'owner_id') -> sa.Column:
    return sa.Column(column, sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('fullname', sa.String(length=100), nullable=False),
        sa.Column('avatar', sa.Text(), nullable=False),
        sa.Column('avatar_public_id', sa.String(length=255), nullable=True),
        sa.Column('cover_image', sa.Text(), nullable=True),
        sa.Column('cover_image_public_id', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_fullname', 'users', ['fullname'])

    op.create_table(
        'videos',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('video_file', sa.Text(), nullable=False),
        sa.Column('video_file_public_id', sa.String(length=255), nullable=False),
        sa.Column('thumbnail', sa.Text(), nullable=False),
        sa.Column('thumbnail_public_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('duration', sa.Float(), nullable=False),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.true()),
        _owner(),
        *_timestamps(),
    )
    op.create_index('ix_videos_owner_created', 'videos', ['owner_id', 'created_at'])

    op.create_table(
        'tweets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _owner(),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tweets_owner_id', 'tweets', ['owner_id'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('video_id', sa.Uuid(), sa.ForeignKey('videos.id', ondelete='CASCADE'), nullable=False),
        _owner(),
        *_timestamps(),
    )
    op.create_index('ix_comments_video_id', 'comments', ['video_id'])

    op.create_table(
        'likes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _owner('liked_by_id'),
        sa.Column('video_id', sa.Uuid(), sa.ForeignKey('videos.id', ondelete='CASCADE'), nullable=True),
        sa.Column('comment_id', sa.Uuid(), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('tweet_id', sa.Uuid(), sa.ForeignKey('tweets.id', ondelete='CASCADE'), nullable=True),
        *_timestamps(with_updated=False),
        sa.CheckConstraint(
            '(CASE WHEN video_id IS NULL THEN 0 ELSE 1 END)'
            ' + (CASE WHEN comment_id IS NULL THEN 0 ELSE 1 END)'
            ' + (CASE WHEN tweet_id IS NULL THEN 0 ELSE 1 END) = 1',
            name='ck_likes_one_target',
        ),
        sa.UniqueConstraint('liked_by_id', 'video_id', name='uq_likes_video'),
        sa.UniqueConstraint('liked_by_id', 'comment_id', name='uq_likes_comment'),
        sa.UniqueConstraint('liked_by_id', 'tweet_id', name='uq_likes_tweet'),
    )
    for column in ('liked_by_id', 'video_id', 'comment_id', 'tweet_id'):
        op.create_index(f'ix_likes_{column}', 'likes', [column])

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _owner('subscriber_id'),
        _owner('channel_id'),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint('subscriber_id', 'channel_id', name='uq_subscriptions_pair'),
    )
    op.create_index('ix_subscriptions_subscriber_id', 'subscriptions', ['subscriber_id'])
    op.create_index('ix_subscriptions_channel_id', 'subscriptions', ['channel_id'])

    op.create_table(
        'playlists',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_private', sa.Boolean(), nullable=False, server_default=sa.false()),
        _owner(),
        *_timestamps(),
    )
    op.create_index('ix_playlists_owner_id', 'playlists', ['owner_id'])

    op.create_table(
        'playlist_videos',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('playlist_id', sa.Uuid(), sa.ForeignKey('playlists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('video_id', sa.Uuid(), sa.ForeignKey('videos.id', ondelete='CASCADE'), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('playlist_id', 'video_id', name='uq_playlist_videos'),
    )


def downgrade() -> None:
    op.drop_table('playlist_videos')
    op.drop_index('ix_playlists_owner_id', table_name='playlists')
    op.drop_table('playlists')
    op.drop_index('ix_subscriptions_channel_id', table_name='subscriptions')
    op.drop_index('ix_subscriptions_subscriber_id', table_name='subscriptions')
    op.drop_table('subscriptions')
    for column in ('liked_by_id', 'video_id', 'comment_id', 'tweet_id'):
        op.drop_index(f'ix_likes_{column}', table_name='likes')
    op.drop_table('likes')
    op.drop_index('ix_comments_video_id', table_name='comments')
    op.drop_table('comments')
    op.drop_index('ix_tweets_owner_id', table_name='tweets')
    op.drop_table('tweets')
    op.drop_index('ix_videos_owner_created', table_name='videos')
    op.drop_table('videos')
    op.drop_index('ix_users_fullname', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
