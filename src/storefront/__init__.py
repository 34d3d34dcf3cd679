"""Storefront: carts, orders, inventory and Webpay payments.

The checkout coordinator turns a customer's cart into a durable order,
reserves and releases stock, drives the payment gateway and walks the
order through its lifecycle.
"""
