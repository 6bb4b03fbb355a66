"""
Accounts, membership lifecycle, agent tooling and admin actions.

Public signup:   member_signup -> pending member + pending user
Agent signup:    register_member -> member without an account, later activated
Admin review:    approve_member / reject_member
"""

import csv
import logging
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth import login as auth_login
from django.contrib.auth import logout as auth_logout
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError
from django.core.mail import EmailMultiAlternatives, send_mail
from django.db import DatabaseError, transaction
from django.db.models import Count
from django.utils.crypto import get_random_string
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode

from . import gemini, notifications, presence
from .exceptions import CommonsError, Conflict, NotFound, PermissionDenied, ValidationFailed
from .models import Broadcast, Member, Post, PUBLIC_SIGNUP_CARD_ID, ROLE_CHOICES, User
from .utils import default_welcome_message, generate_agent_code, generate_card_id, normalize_email

logger = logging.getLogger(__name__)

REVIEW_WELCOME_MESSAGE = "Your registration is under review. Welcome to the community!"
MIN_PASSWORD_LENGTH = 6
# Member.registration_amount holds 10 digits, 2 of them decimals
MAX_REGISTRATION_AMOUNT = Decimal('100000000')

USER_EDITABLE_FIELDS = ('name', 'phone', 'address', 'bio', 'id_card_number', 'circle', 'timezone')
MEMBER_EDITABLE_FIELDS = (
    'full_name', 'phone', 'address', 'bio', 'profession', 'skills', 'awards',
    'interests', 'passions', 'gender', 'age', 'national_id',
)

STAFF_COMPLETION_FIELDS = ('phone', 'address', 'bio', 'id_card_number')
MEMBER_COMPLETION_FIELDS = (
    'phone', 'address', 'bio', 'profession', 'skills', 'interests', 'passions', 'gender', 'age',
)
MEMBER_REMINDER_FIELDS = ('phone', 'address', 'bio')

PAYMENT_STATUSES = ('complete', 'installment', 'pending', 'pending_verification', 'rejected')


# ============================================================================
# AUTH
# ============================================================================

def find_user(identifier):
    """Resolve a username or email to a user, or None."""
    identifier = (identifier or "").strip()
    if not identifier:
        return None
    user = User.objects.filter(username=identifier.lower()).first()
    if user is None:
        user = User.objects.filter(email__iexact=identifier).order_by('id').first()
    return user


def login(request, identifier, password):
    candidate = find_user(identifier)
    if candidate is None:
        raise ValidationFailed("No account found with that username or email.")

    user = authenticate(request, username=candidate.username, password=password)
    if user is None:
        raise ValidationFailed("Invalid password.")
    if user.status == 'ousted':
        raise PermissionDenied("This account has been suspended.")
    if user.role == 'member' and not user.is_superuser and not Member.objects.filter(user=user).exists():
        raise NotFound("No profile found for this account. Please contact support.")

    auth_login(request, user)
    presence.set_online(user)
    logger.info(f"User {user.id} logged in")
    return user


def logout(request):
    if request.user.is_authenticated:
        presence.go_offline(request.user)
    auth_logout(request)


def _check_password(password, user=None):
    try:
        validate_password(password, user=user)
    except ValidationError as e:
        raise ValidationFailed(" ".join(e.messages))


def _check_email_free(email):
    if User.objects.filter(username=email).exists() or User.objects.filter(email__iexact=email).exists():
        raise Conflict("An account with this email already exists.")


def agent_signup(name, email, password, circle):
    email = normalize_email(email)
    if not name or not email or not circle:
        raise ValidationFailed("Name, email and circle are required.")
    _check_email_free(email)
    _check_password(password, User(username=email, email=email, name=name))

    agent = User.objects.create_user(
        username=email,
        email=email,
        password=password,
        name=name,
        role='agent',
        circle=circle,
        agent_code=generate_agent_code(),
        status='active',
        credibility_score=100,
    )
    logger.info(f"Agent signup: {email} ({agent.agent_code})")
    return agent


def member_signup(data, password):
    """Public signup: a pending member record plus a pending account."""
    email = normalize_email(data.get('email'))
    full_name = (data.get('full_name') or "").strip()
    circle = (data.get('circle') or "").strip()
    if not full_name or not email or not circle:
        raise ValidationFailed("Full name, email and circle are required.")
    _check_email_free(email)
    _check_password(password, User(username=email, email=email, name=full_name))

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=email,
                email=email,
                password=password,
                name=full_name,
                role='member',
                status='pending',
                circle=circle,
                credibility_score=100,
                distress_calls_available=0,
                phone=(data.get('phone') or ''),
                address=(data.get('address') or ''),
                id_card_number=(data.get('national_id') or ''),
            )
            member = Member.objects.create(
                full_name=full_name,
                phone=(data.get('phone') or ''),
                email=email,
                circle=circle,
                address=(data.get('address') or ''),
                national_id=(data.get('national_id') or ''),
                registration_amount=0,
                payment_status='pending_verification',
                agent=None,
                membership_card_id=PUBLIC_SIGNUP_CARD_ID,
                welcome_message=REVIEW_WELCOME_MESSAGE,
                user=user,
            )
    except DatabaseError as e:
        logger.error(f"Member signup write failed for {email}: {e}", exc_info=True)
        raise CommonsError(
            "Account created, but failed to save profile. Please contact support.", status=500
        )

    logger.info(f"Public member signup: {email}")
    return member


def _send(subject, body, to):
    email_msg = EmailMultiAlternatives(
        subject=subject,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
        reply_to=[settings.DEFAULT_FROM_EMAIL],
    )
    email_msg.attach_alternative(f"<p>{body}</p>".replace("\n", "<br>"), "text/html")
    email_msg.send(fail_silently=False)


def send_password_reset(email, reset_url):
    """Email a reset link. Unknown addresses are accepted without a hint.

    `reset_url` is formatted with `uid` and `token`.
    """
    user = User.objects.filter(email__iexact=normalize_email(email)).first()
    if user is None:
        logger.info(f"Password reset requested for unknown email {email}")
        return
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    link = reset_url.format(uid=uid, token=token)
    _send(
        "Reset your Ubuntium Global Commons password",
        f"Hello {user.name},\n\nReset your password here: {link}\n\n"
        "If you did not ask for this, you can ignore this email.",
        user.email,
    )
    logger.info(f"Password reset email sent to user {user.id}")


def check_reset_link(uidb64, token):
    """The user a reset link belongs to; ValidationFailed if it is invalid or used."""
    try:
        user = User.objects.get(pk=force_str(urlsafe_base64_decode(uidb64)))
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        user = None
    if user is None or not default_token_generator.check_token(user, token):
        raise ValidationFailed("Invalid or expired reset link.")
    return user


def reset_password(uidb64, token, password):
    user = check_reset_link(uidb64, token)
    _check_password(password, user)
    user.set_password(password)
    user.save()
    return user


def send_verification_email(user, verify_url):
    """`verify_url` is formatted with `token`."""
    if user.email_verified:
        return
    user.email_verification_token = get_random_string(32)
    user.save(update_fields=['email_verification_token'])
    link = verify_url.format(token=user.email_verification_token)
    send_mail(
        "Verify your Ubuntium Global Commons email",
        f"Welcome, {user.name}! Confirm your email address: {link}",
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
        fail_silently=False,
    )
    logger.info(f"Verification email sent to user {user.id}")


def verify_email(token):
    user = User.objects.filter(email_verification_token=token, email_verified=False).first() if token else None
    if user is None:
        raise NotFound("Invalid or expired verification link.")
    user.email_verified = True
    user.email_verification_token = None
    user.save(update_fields=['email_verified', 'email_verification_token'])
    return user


def lookup_member_for_activation(email):
    """Find an agent-registered member who has no account yet."""
    member = (
        Member.objects.filter(email__iexact=normalize_email(email), agent__isnull=False)
        .order_by('-date_registered', '-id')
        .first()
    )
    if member is None:
        raise NotFound("No membership record found for this email.")
    if member.user_id is not None:
        raise Conflict("This membership already has an account. Please log in.")
    return member


def activate_member_account(email, password):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    member = lookup_member_for_activation(email)
    email = normalize_email(member.email)
    _check_email_free(email)

    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            name=member.full_name,
            role='member',
            status='active',
            circle=member.circle,
            phone=member.phone,
            address=member.address,
            id_card_number=member.national_id,
            distress_calls_available=settings.DISTRESS_CALL_QUOTA,
            credibility_score=100,
        )
        member.user = user
        member.save(update_fields=['user'])

    logger.info(f"Member {member.id} activated account {user.id}")
    return user


# ============================================================================
# PROFILE
# ============================================================================

def get_user_profile(user_id):
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound("User not found.")


def _assign(instance, names, fields):
    """Set whitelisted fields, coerced by their model field. Returns changed names."""
    changed = [name for name in names if name in fields]
    for name in changed:
        field = instance._meta.get_field(name)
        value = fields[name]
        if value is None and not field.null:
            value = ''
        try:
            setattr(instance, name, field.to_python(value))
        except ValidationError as e:
            raise ValidationFailed(f"{name}: {' '.join(e.messages)}")
    return changed


def update_user(user, fields):
    changed = _assign(user, USER_EDITABLE_FIELDS, fields)
    if changed:
        user.save(update_fields=changed)
    return user


def get_member_by_user(user):
    return Member.objects.filter(user=user).first()


def update_member_profile(member, fields):
    changed = _assign(member, MEMBER_EDITABLE_FIELDS, fields)
    if changed:
        member.save(update_fields=changed)
    return member


def searchable_users(viewer):
    return User.objects.filter(status='active').exclude(pk=viewer.pk).order_by('name')


def _profile_value(user, member, field):
    value = getattr(member, field, None) if member is not None else None
    if value is None or str(value).strip() == '':
        value = getattr(user, field, None)
    return value


def _filled(value):
    return value is not None and str(value).strip() != ''


def profile_completion(user, member=None):
    """Percentage of the role's profile fields that are filled in."""
    if user.role in ('agent', 'admin'):
        fields = STAFF_COMPLETION_FIELDS
    elif user.role == 'member':
        fields = MEMBER_COMPLETION_FIELDS
    else:
        return 0
    filled = sum(1 for f in fields if _filled(_profile_value(user, member, f)))
    return round(filled / len(fields) * 100)


def profile_incomplete(user, member=None):
    fields = STAFF_COMPLETION_FIELDS if user.role in ('agent', 'admin') else MEMBER_REMINDER_FIELDS
    return any(not _filled(_profile_value(user, member, f)) for f in fields)


# ============================================================================
# AGENT
# ============================================================================

def register_member(agent, data):
    full_name = (data.get('full_name') or "").strip()
    email = normalize_email(data.get('email'))
    if not full_name or not email:
        raise ValidationFailed("Full name and email are required.")
    payment_status = data.get('payment_status', 'complete')
    if payment_status not in ('complete', 'installment'):
        raise ValidationFailed("Payment status must be complete or installment.")
    try:
        amount = Decimal(str(data.get('registration_amount') or 0))
    except ArithmeticError:
        raise ValidationFailed("Registration amount must be a number.")
    if not amount.is_finite() or amount < 0 or amount >= MAX_REGISTRATION_AMOUNT:
        raise ValidationFailed("Registration amount must be between 0 and 100,000,000.")
    amount = amount.quantize(Decimal('0.01'))

    needs_welcome_update = False
    try:
        welcome_message = gemini.generate_welcome_message(full_name, agent.circle)
    except gemini.WelcomeMessageError as e:
        logger.warning(f"Using default welcome message for {full_name}: {e}")
        welcome_message = default_welcome_message(full_name, agent.circle)
        needs_welcome_update = True

    member = Member.objects.create(
        full_name=full_name,
        phone=(data.get('phone') or ''),
        email=email,
        circle=agent.circle,
        address=(data.get('address') or ''),
        national_id=(data.get('national_id') or ''),
        registration_amount=amount,
        payment_status=payment_status,
        agent=agent,
        agent_name=agent.name,
        membership_card_id=generate_card_id(),
        welcome_message=welcome_message,
        needs_welcome_update=needs_welcome_update,
    )
    logger.info(f"Agent {agent.id} registered member {member.id}")
    return member


def agent_members(agent):
    return Member.objects.filter(agent=agent).order_by('-date_registered', '-id')


def agent_commission(members):
    rate = Decimal(str(settings.AGENT_COMMISSION_RATE))
    total = sum((m.registration_amount for m in members if m.payment_status == 'complete'), Decimal('0'))
    return (total * rate).quantize(Decimal('0.01'))


# ============================================================================
# ADMIN
# ============================================================================

def list_users():
    return User.objects.order_by('name')


def update_user_role(user, role):
    if role not in dict(ROLE_CHOICES):
        raise ValidationFailed(f"Unknown role: {role}")
    user.role = role
    if role == 'agent' and not user.agent_code:
        user.agent_code = generate_agent_code()
    user.save(update_fields=['role', 'agent_code'])
    logger.info(f"User {user.id} role set to {role}")
    return user


def list_members():
    """All members newest first, flagged when their email appears more than once."""
    members = list(Member.objects.select_related('user', 'agent').order_by('-date_registered', '-id'))
    counts = {}
    for member in members:
        key = normalize_email(member.email)
        counts[key] = counts.get(key, 0) + 1
    for member in members:
        member.is_duplicate_email = counts[normalize_email(member.email)] > 1
    return members


def pending_members():
    return Member.objects.filter(payment_status='pending_verification').order_by('date_registered', 'id')


def agents_with_stats():
    agents = list(
        User.objects.filter(role='agent')
        .annotate(member_count=Count('registered_members'))
        .order_by('name')
    )
    for agent in agents:
        agent.commission = agent_commission(agent.registered_members.all())
    return agents


AGENT_CSV_HEADER = ['Name', 'Email', 'Circle', 'Agent Code', 'Status', 'Members Registered', 'Commission']


def write_agents_csv(stream):
    writer = csv.writer(stream)
    writer.writerow(AGENT_CSV_HEADER)
    for agent in agents_with_stats():
        writer.writerow([
            agent.name,
            agent.email,
            agent.circle,
            agent.agent_code,
            agent.status,
            agent.member_count,
            f"{agent.commission:.2f}",
        ])
    return stream


def approve_member(member):
    if member.user_id is None:
        raise ValidationFailed("Member does not have a user account to approve.")

    # Raises WelcomeMessageError; nothing is written in that case
    welcome_message = gemini.generate_welcome_message(member.full_name, member.circle)

    with transaction.atomic():
        member.payment_status = 'complete'
        member.welcome_message = welcome_message
        member.membership_card_id = generate_card_id()
        member.needs_welcome_update = False
        member.save(update_fields=[
            'payment_status', 'welcome_message', 'membership_card_id', 'needs_welcome_update',
        ])
        User.objects.filter(pk=member.user_id).update(
            status='active', distress_calls_available=settings.DISTRESS_CALL_QUOTA,
        )

    user = User.objects.get(pk=member.user_id)
    notifications.record_activity(
        'NEW_MEMBER',
        f"{member.full_name} from {member.circle} has joined the commons!",
        link=user.id,
        causer=user,
    )
    logger.info(f"Member {member.id} approved")
    return member


def reject_member(member):
    with transaction.atomic():
        member.payment_status = 'rejected'
        member.save(update_fields=['payment_status'])
        if member.user_id is not None:
            User.objects.filter(pk=member.user_id).update(status='ousted')
    logger.info(f"Member {member.id} rejected")
    return member


def send_broadcast(message):
    message = (message or "").strip()
    if not message:
        raise ValidationFailed("Broadcast message cannot be empty.")
    return Broadcast.objects.create(message=message)


def get_broadcasts():
    return list(Broadcast.objects.all()[:20])


def update_payment_status(member, status):
    if status not in PAYMENT_STATUSES:
        raise ValidationFailed(f"Unknown payment status: {status}")
    member.payment_status = status
    member.save(update_fields=['payment_status'])
    return member


def reset_distress_quota(user):
    user.distress_calls_available = settings.DISTRESS_CALL_QUOTA
    user.save(update_fields=['distress_calls_available'])
    return user


def clear_last_distress_post(user):
    if user.last_distress_post_id is None:
        return False
    with transaction.atomic():
        Post.objects.filter(pk=user.last_distress_post_id).delete()
        user.last_distress_post = None
        user.save(update_fields=['last_distress_post'])
    return True


def process_pending_welcome_messages(limit=10):
    """Retry AI welcome messages for members registered while it was down."""
    updated = 0
    for member in Member.objects.filter(needs_welcome_update=True).order_by('date_registered', 'id')[:limit]:
        try:
            welcome_message = gemini.generate_welcome_message(member.full_name, member.circle)
        except gemini.WelcomeMessageError:
            logger.error(f"Failed to generate welcome message for member {member.id}. Will retry later.")
            continue
        member.welcome_message = welcome_message
        member.needs_welcome_update = False
        member.save(update_fields=['welcome_message', 'needs_welcome_update'])
        updated += 1
    return updated


# ============================================================================
# CIRCLE
# ============================================================================

def members_in_circle(circle, exclude=None):
    qs = User.objects.filter(circle=circle, role='member', status='active')
    if exclude is not None:
        qs = qs.exclude(pk=exclude.pk)
    return list(qs.order_by('name')[:50])


def new_members_in_circle(circle):
    return list(
        User.objects.filter(circle=circle, role='member', status='active').order_by('-date_joined', '-id')[:10]
    )
