"""
Deterministic rule filter for sent threads.

Decides from the recipient and subject alone whether a thread is job-search
outreach. Evaluation order is fixed and the first match wins:

1. self-send            -> exclude
2. personal domain      -> exclude
3. transactional subject -> exclude
4. job-signal subject   -> include
5. anything else        -> uncertain (deferred to the LLM pre-filter)

Exclusions outrank inclusions: a recruiter writing from a gmail.com address
is lost here, but the user can clear the cache, whereas an LLM call for every
receipt or family email costs money on every fresh sync.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional

from .models import FilterAction, FilterDecision, FilterReason, ThreadHeader

logger = logging.getLogger(__name__)

# Consumer mailbox providers: mail sent there is almost always personal
PERSONAL_DOMAINS = frozenset({
    "gmail.com", "googlemail.com",
    "yahoo.com", "ymail.com", "rocketmail.com",
    "hotmail.com", "outlook.com", "live.com", "msn.com",
    "icloud.com", "me.com", "mac.com",
    "aol.com",
    "protonmail.com", "proton.me", "pm.me",
    "gmx.com", "gmx.net", "mail.com",
    "yandex.com", "zoho.com", "fastmail.com", "hey.com",
    "comcast.net", "verizon.net", "att.net",
})

# Receipts, shipping, codes, newsletters and other automated mail
DEFAULT_TRANSACTIONAL_PATTERNS = [
    r"\b(receipt|invoice|billing statement|payment (received|confirmation|failed))\b",
    r"\border\s*(#|no\.?|number|confirm(ed|ation)?|shipped|status)",
    r"\b(shipped|shipping|shipment|delivery|delivered|tracking number|out for delivery)\b",
    r"\b(verification code|verify your|confirm your (email|account)|one[- ]time (code|password)|otp|2fa|security code)\b",
    r"\b(password reset|reset your password|sign[- ]in attempt|new login)\b",
    r"\b(newsletter|unsubscribe|digest|weekly update|webinar)\b",
    r"\b(subscription|renewal|your plan|trial (ends|ending|expired))\b",
    r"\b(booking|reservation|itinerary|boarding pass)\b",
    r"\b(\d+% off|special offer|promo(tion)?|coupon|sale ends)\b",
    r"\b(refund|return label|return request)\b",
]

# Job-search signals, matched case-insensitively
DEFAULT_JOB_SIGNAL_PATTERNS = [
    r"\binterview(s|ing|ed)?\b",
    r"\brecruit(er|ers|ing|ment)?\b",
    r"\b(role|roles|position|positions|opening|openings|vacancy|req)\b",
    r"\b(application|applied|applying|candidacy|candidate)\b",
    r"\b(hiring|hire|job|jobs|career|careers|opportunit(y|ies))\b",
    r"\b(offer letter|job offer|compensation|salary)\b",
    r"\b(referral|refer me|intro(duction)?)\b",
    r"\b(resume|résumé|cv|portfolio|cover letter)\b",
    r"\b(onsite|on-site|phone screen|tech(nical)? screen|take[- ]home|coding challenge|final round)\b",
    r"\b(coffee chat|informational|networking)\b",
    r"\b(engineer(ing)?|developer|manager|director|designer|scientist|analyst)\b",
]

# Short title tokens, upper-case only so "em" or "pm" in prose never match
DEFAULT_JOB_TOKEN_PATTERNS = [
    r"\b(EM|SWE|SDE|SRE|TPM|MLE|EPM|VP|CTO|L[3-8]|E[3-8])\b",
]


def extract_header(thread) -> ThreadHeader:
    """Build the body-free header used by the filter stages."""
    recipient = thread.recipient
    domain = recipient.rsplit("@", 1)[1] if "@" in recipient else ""
    return ThreadHeader(
        thread_id=thread.id,
        recipient=recipient,
        domain=domain,
        subject=thread.subject,
    )


class RuleFilter:
    """
    Rule-based include/exclude/uncertain classifier.

    Usage:
        rules = RuleFilter({"blocked_domains": ["family.org"]})
        decision = rules.classify(header, "me@example.com")
        if decision.action == FilterAction.UNCERTAIN:
            ...  # escalate to the LLM pre-filter
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize the filter.

        Args:
            config: Configuration with:
                - blocked_domains: Extra domains treated as personal
                - transactional_patterns: Extra transactional regexes
                - job_patterns: Extra job-signal regexes
        """
        config = config or {}

        self.personal_domains = set(PERSONAL_DOMAINS)
        self.personal_domains.update(
            d.strip().lower().lstrip("@") for d in config.get("blocked_domains", []) if d.strip()
        )

        self._transactional = self._compile(
            DEFAULT_TRANSACTIONAL_PATTERNS + list(config.get("transactional_patterns", [])),
            re.IGNORECASE,
        )
        self._job_signals = self._compile(
            DEFAULT_JOB_SIGNAL_PATTERNS + list(config.get("job_patterns", [])),
            re.IGNORECASE,
        )
        self._job_signals += self._compile(DEFAULT_JOB_TOKEN_PATTERNS, 0)

        self._stats = {action.value: 0 for action in FilterAction}

    @staticmethod
    def _compile(patterns: Iterable[str], flags: int) -> List[re.Pattern]:
        compiled = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern, flags))
            except re.error as e:
                logger.warning(f"Invalid rule pattern '{pattern}': {e}")
        return compiled

    def is_personal_domain(self, domain: str) -> bool:
        domain = (domain or "").lower()
        if domain in self.personal_domains:
            return True
        # Subdomains of a blocked domain (mail.family.org) count too
        return any(domain.endswith("." + d) for d in self.personal_domains)

    def classify(self, header: ThreadHeader, owner_email: str) -> FilterDecision:
        """
        Decide include/exclude/uncertain for one thread header.

        Args:
            header: Recipient, domain and subject of the thread
            owner_email: The account owner's address

        Returns:
            FilterDecision with the first matching rule's reason
        """
        decision = self._evaluate(header, owner_email)
        self._stats[decision.action.value] += 1
        logger.debug(
            f"Rule decision for {header.thread_id}: {decision.action.value} ({decision.reason.value})"
        )
        return decision

    def _evaluate(self, header: ThreadHeader, owner_email: str) -> FilterDecision:
        recipient = (header.recipient or "").lower()
        if owner_email and recipient == owner_email.lower():
            return FilterDecision(FilterAction.EXCLUDE, FilterReason.SELF_SEND)

        if self.is_personal_domain(header.domain):
            return FilterDecision(FilterAction.EXCLUDE, FilterReason.PERSONAL_DOMAIN)

        subject = header.subject or ""
        if any(p.search(subject) for p in self._transactional):
            return FilterDecision(FilterAction.EXCLUDE, FilterReason.TRANSACTIONAL)

        if any(p.search(subject) for p in self._job_signals):
            return FilterDecision(FilterAction.INCLUDE, FilterReason.JOB_SIGNAL)

        return FilterDecision(FilterAction.UNCERTAIN, FilterReason.NEEDS_LLM)

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)
