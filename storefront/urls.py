from django.urls import path
from . import views

urlpatterns = [
    path('', views.home, name='home'),
    path('product/<str:product_ref>/', views.product_detail, name='product_detail'),

    path('cart/', views.get_session_cart, name='cart'),
    path('cart/add/', views.add_to_cart, name='add_to_cart'),
    path('cart/remove/', views.remove_from_cart, name='remove_from_cart'),
    path('cart/qty/', views.update_cart_qty, name='update_cart_qty'),
    path('cart/open/', views.open_cart, name='open_cart'),
    path('cart/close/', views.close_cart, name='close_cart'),
    path('cart/reset/', views.reset_cart, name='reset_cart'),

    path('checkout/', views.checkout, name='checkout'),
    path('checkout/proceed/', views.proceed, name='proceed'),
    path('checkout/mode/', views.choose_checkout_mode, name='choose_checkout_mode'),
    path('checkout/back/', views.checkout_back, name='checkout_back'),
    path('checkout/place-order/', views.place_order, name='place_order'),
    path('checkout/verify/', views.verify_payment, name='verify_payment'),
    path('order-success/', views.order_success, name='order_success'),

    path('auth/', views.auth_page, name='auth'),
    path('auth/logout/', views.logout_view, name='logout'),

    path('quote/<int:product_id>/', views.request_quote, name='request_quote'),
    path('quote/close/', views.close_quote, name='close_quote'),
]
