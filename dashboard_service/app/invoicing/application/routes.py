INVOICES_ROUTE = "/dashboard/invoices"
