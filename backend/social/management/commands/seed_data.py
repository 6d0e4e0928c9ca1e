"""
Management command to seed the database with sample data.

Usage: python manage.py seed_data
"""

import random
from datetime import timedelta
from django.core.management.base import BaseCommand
from django.utils import timezone

from social import graph, services
from social.models import Member, Post, Comment, Message, Draft


class Command(BaseCommand):
    help = 'Seed the database with sample data for testing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=10,
            help='Number of members to create'
        )
        parser.add_argument(
            '--posts',
            type=int,
            default=30,
            help='Number of posts to create'
        )
        parser.add_argument(
            '--comments',
            type=int,
            default=60,
            help='Number of comments to create'
        )
        parser.add_argument(
            '--messages',
            type=int,
            default=40,
            help='Number of direct messages to create'
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding'
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            Draft.objects.all().delete()
            Message.objects.all().delete()
            Post.objects.all().delete()
            Member.objects.all().delete()

        self.stdout.write('Creating members...')
        members = self._create_members(options['users'])

        self.stdout.write('Creating follows...')
        follows = self._create_follows(members)

        self.stdout.write('Creating posts...')
        posts = self._create_posts(members, options['posts'])

        self.stdout.write('Creating comments...')
        comments = self._create_comments(members, posts, options['comments'])

        self.stdout.write('Creating likes and reposts...')
        self._create_reactions(members, posts)

        self.stdout.write('Creating messages...')
        messages = self._create_messages(members, options['messages'])

        self.stdout.write(self.style.SUCCESS(
            f'Successfully created:\n'
            f'  - {len(members)} members\n'
            f'  - {follows} follows\n'
            f'  - {len(posts)} posts\n'
            f'  - {len(comments)} comments\n'
            f'  - {len(messages)} messages\n'
            f'  - Likes and reposts'
        ))

    def _create_members(self, count):
        members = []
        providers = ['google', 'github']
        for i in range(count):
            app_user_id = f'user{i+1}'
            member, _ = Member.objects.get_or_create(
                app_user_id=app_user_id,
                provider=providers[i % len(providers)],
                defaults={
                    'display_name': f'User {i+1}',
                    'provider_account_id': f'seed-{i+1}',
                    'email': f'{app_user_id}@example.com',
                    'oauth_completed': True,
                }
            )
            members.append(member)
        return members

    def _create_follows(self, members):
        created = 0
        for member in members:
            others = [m for m in members if m.pk != member.pk]
            for target in random.sample(others, k=min(3, len(others))):
                if graph.follow(member, target.app_user_id).changed:
                    created += 1
        return created

    def _create_posts(self, members, count):
        posts = []
        contents = [
            "Just shipped a new side project! https://example.com/demo #buildinpublic",
            "Coffee first, then code.",
            "Hot take: tabs vs spaces doesn't matter if the formatter runs on save.",
            "Anyone going to the meetup this week? @user1",
            "Reading about partial unique indexes today. Surprisingly useful.",
            "Weekend plans: hiking and zero screens.",
            "What's the best book you read this year?",
        ]

        for i in range(count):
            post = Post.objects.create(
                author=random.choice(members),
                content=random.choice(contents),
                created_at=timezone.now() - timedelta(hours=random.randint(0, 48))
            )
            posts.append(post)
        return posts

    def _create_comments(self, members, posts, count):
        comments = []
        comment_texts = [
            "Great point! I totally agree.",
            "Hmm, I'm not sure about this...",
            "Thanks for sharing!",
            "Can you elaborate on this?",
            "Well said!",
        ]

        for i in range(count):
            comment = Comment.objects.create(
                post=random.choice(posts),
                author=random.choice(members),
                content=random.choice(comment_texts),
                created_at=timezone.now() - timedelta(hours=random.randint(0, 24))
            )
            comments.append(comment)
        return comments

    def _create_reactions(self, members, posts):
        for post in posts:
            for liker in random.sample(members, k=len(members) // 2):
                services.toggle_like(liker, post.pk)
            if random.random() < 0.2:
                reposter = random.choice([m for m in members if m.pk != post.author_id])
                services.toggle_repost(reposter, post.pk)

    def _create_messages(self, members, count):
        messages = []
        texts = ["Hey!", "Did you see that post?", "Lunch tomorrow?", "Thanks!", "On my way."]
        for i in range(count):
            sender, receiver = random.sample(members, k=2)
            message = Message.objects.create(
                sender=sender,
                receiver=receiver,
                content=random.choice(texts),
                read=random.random() < 0.5,
                created_at=timezone.now() - timedelta(minutes=random.randint(0, 600))
            )
            messages.append(message)
        return messages
