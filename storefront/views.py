import logging
from decimal import Decimal

from django.conf import settings
from django.contrib import messages
from django.http import Http404, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from .api import ApiError, SessionExpired
from .api.schemas import PaymentVerifySchema, QuoteInputSchema
from .forms import CheckoutForm, LoginForm, PaymentVerifyForm, QuoteForm, SignupForm
from .utils.auth import api_client, get_shop_user, login, login_required, logout
from .utils.cart import Cart
from .utils.checkout import CART, FORM, SPLIT, Checkout, CheckoutError
from .utils.quotes import RequestQuote

logger = logging.getLogger(__name__)

PENDING_ORDER_KEY = 'pending_order'
LAST_ORDER_KEY = 'last_order'


def _wants_json(request):
    return (
        request.headers.get('x-requested-with') == 'XMLHttpRequest'
        or 'application/json' in request.headers.get('accept', '')
    )


def _next_url(request, default='home'):
    url = request.POST.get('next') or request.GET.get('next') or request.headers.get('referer')
    if url and url_has_allowed_host_and_scheme(
        url, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return url
    return reverse(default)


def _cart_response(request, cart, status=200, error=None):
    if _wants_json(request):
        payload = {'ok': error is None, 'cart': cart.to_dict()}
        if error:
            payload['error'] = error
        return JsonResponse(payload, status=status)
    if error:
        messages.error(request, error)
    return redirect(_next_url(request))


def _parse_product_ref(product_ref):
    # '12' or '12-some-slug'
    head = str(product_ref).split('-', 1)[0]
    if not head.isdigit():
        raise Http404('Product not found')
    return int(head)


def _restart_checkout(cart):
    # the checkout mode depends on the cart contents, recompute it on the next proceed
    state = Checkout(cart)
    if state.step != CART:
        state.back()


def _load_product(request, product_id):
    with api_client(request) as api:
        return api.get_product(product_id)


# ---------- Catalog ----------
def home(request):
    products = []
    try:
        with api_client(request) as api:
            products = api.list_products()
    except ApiError as exc:
        logger.error('Could not load products: %s', exc)
        messages.error(request, 'Could not load products. Please try again later.')

    return render(request, 'storefront/index.html', {
        'products': products,
        'software': [p for p in products if p.category == 'Software'],
        'hardware': [p for p in products if p.category == 'Hardware'],
    })


def product_detail(request, product_ref):
    product_id = _parse_product_ref(product_ref)
    try:
        product = _load_product(request, product_id)
    except ApiError as exc:
        if exc.is_not_found:
            raise Http404('Product not found')
        logger.error('Could not load product %s: %s', product_id, exc)
        messages.error(request, 'Could not load this product. Please try again later.')
        return redirect('home')

    canonical = f'{product.id}-{product.slug}' if product.slug else str(product.id)
    if str(product_ref) != canonical:
        return redirect('product_detail', product_ref=canonical)

    return render(request, 'storefront/product_detail.html', {'product': product})


# ---------- Cart ----------
def get_session_cart(request):
    return JsonResponse({'cart': Cart(request.session).to_dict()})


@require_POST
def add_to_cart(request):
    cart = Cart(request.session)
    try:
        product_id = int(request.POST['product_id'])
        qty = int(request.POST.get('qty', 1))
    except (KeyError, ValueError):
        return _cart_response(request, cart, status=400, error='Invalid product or quantity')
    if qty < 1:
        return _cart_response(request, cart, status=400, error='Quantity must be at least 1')

    try:
        product = _load_product(request, product_id)
    except ApiError as exc:
        logger.error('Add to cart failed for product %s: %s', product_id, exc)
        status = 404 if exc.is_not_found else 502
        return _cart_response(request, cart, status=status, error='This product is not available')

    _restart_checkout(cart)
    cart.add(product, qty)
    cart.open()
    if not _wants_json(request):
        messages.success(request, f'{product.name} added to cart')
    return _cart_response(request, cart)


@require_POST
def remove_from_cart(request):
    cart = Cart(request.session)
    try:
        cart.remove(request.POST['product_id'])
    except (KeyError, ValueError):
        return _cart_response(request, cart, status=400, error='Invalid product')
    _restart_checkout(cart)
    return _cart_response(request, cart)


@require_POST
def update_cart_qty(request):
    cart = Cart(request.session)
    try:
        cart.update_qty(request.POST['product_id'], int(request.POST.get('delta', 1)))
    except (KeyError, ValueError):
        return _cart_response(request, cart, status=400, error='Invalid product or quantity')
    _restart_checkout(cart)
    return _cart_response(request, cart)


@require_POST
def open_cart(request):
    cart = Cart(request.session)
    cart.open()
    return _cart_response(request, cart)


@require_POST
def close_cart(request):
    cart = Cart(request.session)
    cart.close()
    return _cart_response(request, cart)


@require_POST
def reset_cart(request):
    cart = Cart(request.session)
    cart.reset()
    return _cart_response(request, cart)


# ---------- Checkout steps ----------
@require_POST
def proceed(request):
    checkout = Checkout(Cart(request.session))
    try:
        step = checkout.proceed()
    except CheckoutError as exc:
        messages.error(request, str(exc))
        return redirect(_next_url(request))
    if step == FORM:
        return redirect('checkout')
    return redirect(_next_url(request))


@require_POST
def choose_checkout_mode(request):
    checkout = Checkout(Cart(request.session))
    try:
        checkout.choose_mode(request.POST.get('mode'))
    except CheckoutError as exc:
        messages.error(request, str(exc))
        return redirect(_next_url(request))
    return redirect('checkout')


@require_POST
def checkout_back(request):
    cart = Cart(request.session)
    Checkout(cart).back()
    cart.open()
    return redirect('home')


def checkout(request):
    cart = Cart(request.session)
    state = Checkout(cart)
    if not cart:
        messages.error(request, 'Your cart is empty. Please add items before checkout.')
        return redirect('home')
    if state.step != FORM:
        state.proceed()
        if state.step != FORM:
            cart.open()
            return redirect('home')

    user = get_shop_user(request)
    addresses = []
    if user:
        try:
            with api_client(request) as api:
                addresses = api.get_my_addresses()
        except ApiError as exc:
            logger.warning('Saved addresses unavailable: %s', exc)

    form = CheckoutForm(initial=CheckoutForm.initial_for(user, addresses))
    return render(request, 'storefront/checkout.html', {
        'cart': cart,
        'checkout': state,
        'form': form,
        'addresses': addresses,
    })


def _quote_requests(form, items):
    data = form.cleaned_data
    note = f'Requested at checkout by {data["first_name"]} {data["last_name"]}'.strip()
    if data.get('company_name'):
        note += f' ({data["company_name"]})'
    return [
        QuoteInputSchema(
            product_id=item['id'],
            email=data['email'],
            phone=data['phone'],
            quantity=item['qty'],
            message=note,
        )
        for item in items
    ]


@require_POST
@login_required('You must be logged in to checkout')
def place_order(request):
    cart = Cart(request.session)
    state = Checkout(cart)

    if not cart:
        messages.error(request, 'Your cart is empty. Please add items before checkout.')
        return redirect('home')
    if state.step != FORM:
        state.proceed()
        if state.step != FORM:
            cart.open()
            messages.info(request, 'Choose how you would like to check out before placing the order.')
            return redirect('home')

    form = CheckoutForm(request.POST)
    if not form.is_valid():
        return render(request, 'storefront/checkout.html', {
            'cart': cart,
            'checkout': state,
            'form': form,
            'addresses': [],
        })

    items = cart.order_items() if state.mode == SPLIT else []
    if state.mode == SPLIT and not items:
        messages.error(request, 'Your cart contains no purchasable items.')
        return redirect('checkout')

    try:
        with api_client(request) as api:
            order = api.initiate_order(form.to_schema(items)) if items else None
            for quote in _quote_requests(form, state.items_to_quote()):
                api.create_quote_request(quote)
    except ApiError as exc:
        logger.error('Checkout failed: %s', exc)
        messages.error(request, f'Checkout failed: {exc.message}')
        return redirect('checkout')
    except SessionExpired:
        raise
    except Exception:
        logger.exception('Unexpected checkout failure')
        messages.error(request, 'Something went wrong. Please try again.')
        return redirect('checkout')

    if order is None:
        request.session[LAST_ORDER_KEY] = {'order_id': None, 'quotes': len(state.items_to_quote())}
        state.complete()
        messages.success(request, 'Quote request received!')
        return redirect('order_success')

    data = form.cleaned_data
    request.session[PENDING_ORDER_KEY] = {
        'order_id': order.order_id,
        'razorpay_order_id': order.razorpay_order_id,
        'amount': str(order.amount),
        'currency': order.currency,
    }
    razorpay_options = {
        'key': order.key_id,
        'amount': int((order.amount * 100).quantize(Decimal('1'))),  # paise
        'currency': order.currency,
        'name': settings.STOREFRONT_MERCHANT_NAME,
        'description': f'Order #{order.order_id}',
        'order_id': order.razorpay_order_id,
        'prefill': {
            'name': f'{data["first_name"]} {data["last_name"]}',
            'email': data['email'],
            'contact': data['phone'],
        },
        'theme': {'color': '#0f172a'},
    }
    return render(request, 'storefront/payment.html', {
        'order': order,
        'razorpay_options': razorpay_options,
    })


@require_POST
def verify_payment(request):
    cart = Cart(request.session)
    pending = request.session.get(PENDING_ORDER_KEY) or {}
    form = PaymentVerifyForm(request.POST)

    if not form.is_valid() or form.cleaned_data['razorpay_order_id'] != pending.get('razorpay_order_id'):
        logger.warning('Payment callback does not match the pending order: %s', form.data)
        messages.error(request, 'Payment verification failed. Please contact support.')
        return redirect('checkout')

    try:
        with api_client(request) as api:
            api.verify_payment(PaymentVerifySchema(**form.cleaned_data))
    except ApiError as exc:
        logger.error('Verification failed for order %s: %s', pending.get('order_id'), exc)
        messages.error(request, 'Payment verification failed. Please contact support.')
        return redirect('checkout')

    request.session.pop(PENDING_ORDER_KEY, None)
    request.session[LAST_ORDER_KEY] = {'order_id': pending.get('order_id'), 'quotes': 0}
    Checkout(cart).complete()
    messages.success(request, 'Payment Successful!')
    return redirect('order_success')


def order_success(request):
    order = request.session.get(LAST_ORDER_KEY)
    if not order:
        return redirect('home')
    return render(request, 'storefront/order_success.html', {'order': order})


# ---------- Auth ----------
def auth_page(request):
    if get_shop_user(request):
        return redirect('home')

    is_login = request.POST.get('mode', request.GET.get('mode', 'login')) != 'signup'
    form_class = LoginForm if is_login else SignupForm
    form = form_class(request.POST or None)

    if request.method == 'POST' and form.is_valid():
        try:
            with api_client(request) as api:
                if is_login:
                    tokens = api.obtain_token(form.to_schema())
                    login(request, tokens.access, tokens.refresh)
                else:
                    account = api.register_user(form.to_schema())
                    login(request, account.access, account.refresh, account.user)
        except ApiError as exc:
            logger.info('Authentication failed: %s', exc)
            if is_login and exc.status == 401:
                form.add_error(None, 'Invalid email or password')
            else:
                form.add_error(None, exc.message)
        else:
            return redirect(_next_url(request))

    return render(request, 'storefront/auth.html', {
        'form': form,
        'is_login': is_login,
        'next': request.POST.get('next') or request.GET.get('next', ''),
    })


@require_POST
def logout_view(request):
    logout(request)
    return redirect('auth')


# ---------- Quotes ----------
@login_required('Please log in to request a quote')
def request_quote(request, product_id):
    quote = RequestQuote(request.session)
    try:
        product = _load_product(request, product_id)
    except ApiError as exc:
        if exc.is_not_found:
            raise Http404('Product not found')
        logger.error('Quote form could not load product %s: %s', product_id, exc)
        messages.error(request, 'Could not load this product. Please try again later.')
        return redirect('home')

    user = get_shop_user(request)
    if request.method == 'POST':
        form = QuoteForm(request.POST)
        if form.is_valid():
            try:
                with api_client(request) as api:
                    api.create_quote_request(form.to_schema(product.id))
            except ApiError as exc:
                logger.error('Quote request for product %s failed: %s', product.id, exc)
                messages.error(request, 'Failed to submit request. Please try again.')
            else:
                quote.close()
                messages.success(request, 'Quote request received!')
                return render(request, 'storefront/quote_success.html', {'product': product})
    else:
        quote.open(product)
        form = QuoteForm(initial={'name': user.full_name, 'email': user.email, 'quantity': 1})

    return render(request, 'storefront/quote_form.html', {'product': product, 'form': form})


@require_POST
def close_quote(request):
    RequestQuote(request.session).close()
    return redirect(_next_url(request))
