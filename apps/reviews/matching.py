"""
Reviewer matching engine.

Merges reviewers suggested by the author with reviewers found in the pool
by keyword overlap, and ranks them with an integer key:

    match_score = keyword weights + availability score

Selection never creates assignments; see apps.reviews.services for that.
"""
import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.common.exceptions import NotFoundError, ValidationError
from apps.common.utils import retry_on_persistence_error, workflow_setting
from apps.submissions.models import Article

from .availability import score_reviewer
from .models import ACTIVE_ASSIGNMENT_STATUSES, AuthorRecommendedReviewer, ReviewAssignment, ReviewerProfile

logger = logging.getLogger(__name__)


@dataclass
class SelectedReviewer:
    """A ranked candidate with the origin it was selected from."""

    reviewer: ReviewerProfile
    origin: str
    keyword_score: int
    availability_score: int
    recommendation: Optional[AuthorRecommendedReviewer] = None

    @property
    def match_score(self) -> int:
        return self.keyword_score + self.availability_score

    @property
    def profile_id(self):
        return self.reviewer.profile_id

    def ranking_key(self):
        return (
            -self.match_score,
            self.reviewer.current_load,
            -self.reviewer.completed_reviews,
            str(self.reviewer.pk),
        )

    def as_dict(self) -> Dict:
        profile = self.reviewer.profile
        return {
            'reviewer_id': str(self.reviewer.id),
            'profile_id': str(self.profile_id),
            'name': profile.get_full_name(),
            'email': profile.user.email,
            'affiliation': profile.affiliation_name,
            'origin': self.origin,
            'recommendation_id': str(self.recommendation.id) if self.recommendation else None,
            'scores': {
                'match': self.match_score,
                'keyword': self.keyword_score,
                'availability': self.availability_score,
            },
            'current_load': self.reviewer.current_load,
            'max_load': self.reviewer.max_load,
            'completed_reviews': self.reviewer.completed_reviews,
        }


@dataclass
class SelectionResult:
    article_id: str
    target_count: int
    selected: List[SelectedReviewer] = field(default_factory=list)
    recommended_used: int = 0
    system_found: int = 0
    shortfall: int = 0
    steps: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> Dict:
        return {
            'article_id': str(self.article_id),
            'target_count': self.target_count,
            'selected': [candidate.as_dict() for candidate in self.selected],
            'recommended_used': self.recommended_used,
            'system_found': self.system_found,
            'shortfall': self.shortfall,
            'steps': dict(self.steps),
        }


def normalize_terms(terms) -> List[str]:
    """Lower-case, stripped, non-empty terms from a list or comma separated string."""
    if not terms:
        return []
    if isinstance(terms, str):
        terms = terms.split(',')
    return [str(term).strip().lower() for term in terms if str(term).strip()]


def terms_match(keyword: str, term: str) -> bool:
    return keyword == term or keyword in term or term in keyword


class ReviewerMatchingEngine:
    """
    Finds and ranks reviewers for an article.
    """

    def __init__(self, clock=None, expertise_weight=None, specialization_weight=None, recommended_share=None):
        self.clock = clock or timezone.now
        self.expertise_weight = (
            expertise_weight if expertise_weight is not None
            else workflow_setting('EXPERTISE_WEIGHT', 3)
        )
        self.specialization_weight = (
            specialization_weight if specialization_weight is not None
            else workflow_setting('SPECIALIZATION_WEIGHT', 2)
        )
        self.recommended_share = (
            recommended_share if recommended_share is not None
            else workflow_setting('RECOMMENDED_SHARE', 0.5)
        )

    def get_article(self, article_id) -> Article:
        try:
            return Article.objects.select_related('author').get(pk=article_id)
        except (Article.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"Article {article_id} not found", article_id=str(article_id))

    def reviewer_pool(self):
        """Active reviewer-role candidates."""
        return ReviewerProfile.objects.select_related('profile__user').filter(
            is_active=True,
            profile__role='reviewer',
            profile__user__is_active=True,
        )

    def excluded_profile_ids(self, article: Article, exclude_ids: Iterable = ()) -> Set[str]:
        """
        Author, co-authors, actively assigned reviewers and caller exclusions,
        as profile id strings.
        """
        excluded = {str(article.author_id)}
        excluded.update(str(pk) for pk in article.coauthors.values_list('id', flat=True))
        excluded.update(
            str(pk) for pk in ReviewAssignment.objects.filter(
                article=article,
                status__in=ACTIVE_ASSIGNMENT_STATUSES,
            ).values_list('reviewer__profile_id', flat=True)
        )
        try:
            excluded.update(str(uuid.UUID(str(pk))) for pk in exclude_ids or ())
        except ValueError:
            raise ValidationError("exclude_ids must be profile ids", exclude_ids=[str(pk) for pk in exclude_ids])
        return excluded

    def keyword_score(self, keywords: List[str], reviewer: ReviewerProfile) -> int:
        """Weighted count of article keywords matched by the reviewer's terms."""
        expertise = normalize_terms(reviewer.expertise)
        specializations = normalize_terms(reviewer.specializations)

        score = 0
        for keyword in keywords:
            if any(terms_match(keyword, term) for term in expertise):
                score += self.expertise_weight
            if any(terms_match(keyword, term) for term in specializations):
                score += self.specialization_weight
        return score

    def rank(self, reviewer, keywords, now, origin, recommendation=None) -> SelectedReviewer:
        return SelectedReviewer(
            reviewer=reviewer,
            origin=origin,
            keyword_score=self.keyword_score(keywords, reviewer),
            availability_score=score_reviewer(reviewer, now),
            recommendation=recommendation,
        )

    def resolve_recommendation(self, recommendation) -> Optional[ReviewerProfile]:
        email = (recommendation.email or '').strip()
        if not email:
            return None
        return self.reviewer_pool().filter(profile__user__email__iexact=email).first()

    def validate_recommendations(self, article, excluded, persist=True):
        """
        Resolve each author recommendation against the pool.

        Returns (recommendations, usable) where ``usable`` holds
        (recommendation, reviewer) pairs for the ones marked suggested.
        A reviewer suggested twice is only usable once.
        """
        recommendations = list(article.recommended_reviewers.all())
        usable = []
        seen = set()

        for recommendation in recommendations:
            reviewer = self.resolve_recommendation(recommendation)
            valid = (
                reviewer is not None
                and str(reviewer.profile_id) not in excluded
                and reviewer.pk not in seen
            )
            new_status = 'suggested' if valid else 'invalid'

            if persist and (
                recommendation.validation_status != new_status
                or recommendation.resolved_reviewer_id != (reviewer.pk if reviewer else None)
            ):
                recommendation.validation_status = new_status
                recommendation.resolved_reviewer = reviewer
                recommendation.save(update_fields=['validation_status', 'resolved_reviewer', 'updated_at'])

            if valid:
                seen.add(reviewer.pk)
                usable.append((recommendation, reviewer))
            else:
                logger.debug(f"Recommendation {recommendation.email} for article {article.id} is invalid")

        return recommendations, usable

    def find_system_candidates(self, keywords, excluded, skip_reviewer_ids, now) -> List[SelectedReviewer]:
        pool = self.reviewer_pool().exclude(profile_id__in=list(excluded)).exclude(pk__in=list(skip_reviewer_ids))
        candidates = [self.rank(reviewer, keywords, now, 'system') for reviewer in pool]
        candidates.sort(key=SelectedReviewer.ranking_key)
        return candidates

    def recommended_cap(self, target_count: int, usable_count: int) -> int:
        if usable_count == 0:
            return 0
        return min(target_count, max(1, math.floor(target_count * self.recommended_share)))

    @retry_on_persistence_error
    def select_reviewers(self, article_id, target_count: int, exclude_ids: Iterable = ()) -> SelectionResult:
        """
        Select up to ``target_count`` reviewers for an article.

        Author recommendations that resolve to an eligible reviewer take up
        to half of the slots; the rest go to the best system candidates.
        Fewer eligible reviewers than requested is reported as a shortfall.
        Validation outcomes are saved on the recommendations.
        """
        if target_count is None or int(target_count) < 1:
            raise ValidationError("target_count must be at least 1", target_count=target_count)
        target_count = int(target_count)

        now = self.clock()
        article = self.get_article(article_id)
        keywords = normalize_terms(article.keywords)

        with transaction.atomic():
            excluded = self.excluded_profile_ids(article, exclude_ids)
            recommendations, usable = self.validate_recommendations(article, excluded, persist=True)

        ranked_recommended = sorted(
            (self.rank(reviewer, keywords, now, 'recommended', recommendation)
             for recommendation, reviewer in usable),
            key=SelectedReviewer.ranking_key,
        )
        cap = self.recommended_cap(target_count, len(ranked_recommended))
        chosen_recommended = ranked_recommended[:cap]

        system_candidates = self.find_system_candidates(
            keywords,
            excluded,
            {candidate.reviewer.pk for candidate in chosen_recommended},
            now,
        )

        selected = (chosen_recommended + system_candidates)[:target_count]
        recommended_used = sum(1 for candidate in selected if candidate.origin == 'recommended')

        result = SelectionResult(
            article_id=str(article.id),
            target_count=target_count,
            selected=selected,
            recommended_used=recommended_used,
            system_found=len(selected) - recommended_used,
            shortfall=max(0, target_count - len(selected)),
            steps={
                'recommended_retrieved': len(recommendations),
                'recommended_validated': len(usable),
                'system_candidates': len(system_candidates),
                'total_ranked': len(ranked_recommended) + len(system_candidates),
                'final_selected': len(selected),
            },
        )

        logger.info(
            f"Selected {len(selected)}/{target_count} reviewers for article {article.id} "
            f"({result.recommended_used} recommended, {result.system_found} system, "
            f"shortfall {result.shortfall})"
        )
        return result

    def preview(self, article_id, limit: int = 10) -> Dict:
        """
        Show how recommendations would validate and the best system
        candidates, without saving anything.
        """
        now = self.clock()
        article = self.get_article(article_id)
        keywords = normalize_terms(article.keywords)
        excluded = self.excluded_profile_ids(article)
        recommendations, usable = self.validate_recommendations(article, excluded, persist=False)
        usable_ids = {recommendation.pk for recommendation, _ in usable}

        system_candidates = self.find_system_candidates(
            keywords,
            excluded,
            {reviewer.pk for _, reviewer in usable},
            now,
        )

        return {
            'article_id': str(article.id),
            'keywords': keywords,
            'excluded_count': len(excluded),
            'recommendations': [
                {
                    'id': str(recommendation.id),
                    'name': recommendation.name,
                    'email': recommendation.email,
                    'current_status': recommendation.validation_status,
                    'would_be': 'suggested' if recommendation.pk in usable_ids else 'invalid',
                }
                for recommendation in recommendations
            ],
            'system_candidates': [candidate.as_dict() for candidate in system_candidates[:limit]],
        }

    def available_reviewers(self, query: str = '', category: str = '', article_id=None, limit: int = 50) -> List[Dict]:
        """
        List pool reviewers with their availability, best first.

        ``article_id`` hides reviewers who already have an assignment on
        that article.
        """
        now = self.clock()
        pool = self.reviewer_pool()

        if query:
            pool = pool.filter(
                Q(profile__display_name__icontains=query) |
                Q(profile__user__email__icontains=query) |
                Q(profile__affiliation_name__icontains=query)
            )
        if article_id:
            assigned = ReviewAssignment.objects.filter(article_id=article_id).values_list('reviewer_id', flat=True)
            pool = pool.exclude(pk__in=list(assigned))

        category_term = (category or '').strip().lower()
        reviewers = []
        for reviewer in pool.order_by('profile__display_name')[:limit]:
            terms = normalize_terms(reviewer.expertise) + normalize_terms(reviewer.specializations)
            if category_term and not any(category_term in term for term in terms):
                continue
            profile = reviewer.profile
            reviewers.append({
                'reviewer_id': str(reviewer.id),
                'profile_id': str(profile.id),
                'name': profile.get_full_name(),
                'email': profile.user.email,
                'affiliation': profile.affiliation_name,
                'expertise': list(reviewer.expertise or []),
                'specializations': list(reviewer.specializations or []),
                'availability_status': reviewer.availability_status,
                'current_load': reviewer.current_load,
                'max_load': reviewer.max_load,
                'can_accept_review': reviewer.can_accept_review,
                'completed_reviews': reviewer.completed_reviews,
                'late_reviews': reviewer.late_reviews,
                'reliability_score': reviewer.reliability_score,
                'overall_rating': reviewer.overall_rating,
                'last_review_date': reviewer.last_review_date,
                'availability_score': score_reviewer(reviewer, now),
            })

        reviewers.sort(key=lambda r: (-r['availability_score'], -r['completed_reviews'], -r['reliability_score']))
        return reviewers
