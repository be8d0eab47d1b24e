from django.contrib.auth import get_user_model

from apps.reviews.models import ReviewerProfile
from apps.submissions.models import Article, Submission

User = get_user_model()


def make_profile(email, role='author', name=''):
    user = User.objects.create_user(email=email, password='testpass123')
    profile = user.profile
    profile.role = role
    profile.display_name = name
    profile.save()
    return profile


def make_reviewer(email, expertise=(), specializations=(), **fields):
    profile = make_profile(email, role='reviewer', name=email.split('@')[0])
    return ReviewerProfile.objects.create(
        profile=profile,
        expertise=list(expertise),
        specializations=list(specializations),
        **fields
    )


def make_article(author, keywords=(), title='Deep learning for protein folding', status='under_review'):
    article = Article.objects.create(title=title, author=author, keywords=list(keywords))
    Submission.objects.create(article=article, author=author, status=status)
    return article
