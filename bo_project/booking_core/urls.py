from django.urls import path

from . import views

app_name = "booking_core"

urlpatterns = [
    path("availability/", views.availability_view, name="availability"),
    path("quote/", views.quote_view, name="quote"),
    path("bookings/", views.create_booking_view, name="create-booking"),
    path("bookings/<int:booking_id>/payments/", views.record_payment_view,
         name="record-payment"),
    path("bookings/<int:booking_id>/cancel/", views.cancel_booking_view,
         name="cancel-booking"),
    path("halls/<int:hall_id>/statistics/", views.hall_statistics_view,
         name="hall-statistics"),
    path("events/<int:event_id>/statistics/", views.event_statistics_view,
         name="event-statistics"),
]
