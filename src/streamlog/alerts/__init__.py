"""Alert rule editor: admin-ajax dispatcher, controller and views."""
