"""Lark grammar for the supported PostgreSQL subset."""

SQL_GRAMMAR = r"""
start: _SEMI* stmt (_SEMI+ stmt)* _SEMI*

?stmt: query
     | insert_stmt
     | update_stmt
     | delete_stmt
     | create_table_stmt
     | drop_table_stmt
     | truncate_stmt
     | alter_table_stmt

// ---------------------------------------------------------------- queries

query: with_clause? set_expr order_clause? _limit_offset? for_clause?

_limit_offset: limit_part offset_part?
             | offset_part limit_part?
             | offset_part? fetch_part

?set_expr: set_term
         | set_expr "union"i set_term                -> union_op
         | set_expr "union"i "distinct"i set_term    -> union_op
         | set_expr "union"i "all"i set_term         -> union_all_op
         | set_expr "except"i set_term               -> except_op
         | set_expr "except"i "all"i set_term        -> except_all_op

?set_term: set_primary
         | set_term "intersect"i set_primary         -> intersect_op

?set_primary: select_core
            | "(" query ")"

select_core: "select"i distinct_spec? select_list from_clause? where_clause? group_clause? having_clause?

distinct_spec: "distinct"i                           -> distinct_all
             | "distinct"i "on"i "(" expr_list ")"   -> distinct_on
             | "all"i                                -> select_all

select_list: select_item ("," select_item)*

select_item: STAR                                    -> select_star
           | qualified_name "." STAR                 -> select_qualified_star
           | expr                                    -> select_expr
           | expr "as"i? ident                       -> select_aliased

with_clause: "with"i cte ("," cte)*                  -> with_clause
           | "with"i "recursive"i cte ("," cte)*     -> with_recursive_clause

cte: ident cte_columns? "as"i "(" cte_body ")"
cte_columns: "(" ident_list ")"
?cte_body: query
         | insert_stmt
         | update_stmt
         | delete_stmt

from_clause: "from"i from_item ("," from_item)*

from_item: table_ref join_part*

?table_ref: relation_ref
          | subquery_ref
          | lateral_ref
          | function_ref

relation_ref: qualified_name alias_clause?
subquery_ref: "(" query ")" alias_clause?
lateral_ref: "lateral"i "(" query ")" alias_clause?
           | "lateral"i func_call alias_clause?
function_ref: func_call alias_clause?

alias_clause: "as"i? ident

join_part: "inner"i? "join"i table_ref join_condition           -> inner_join
         | "left"i "outer"i? "join"i table_ref join_condition   -> left_join
         | "right"i "outer"i? "join"i table_ref join_condition  -> right_join
         | "full"i "outer"i? "join"i table_ref join_condition   -> full_join
         | "cross"i "join"i table_ref                           -> cross_join

join_condition: "on"i expr                           -> join_on
              | "using"i "(" ident_list ")"          -> join_using

where_clause: "where"i expr
group_clause: "group"i "by"i expr_list
having_clause: "having"i expr

order_clause: "order"i "by"i order_item ("," order_item)*
order_item: expr order_direction? nulls_order?
order_direction: "asc"i                              -> order_asc
               | "desc"i                             -> order_desc
nulls_order: "nulls"i "first"i                       -> nulls_first
           | "nulls"i "last"i                        -> nulls_last

limit_part: "limit"i expr
          | "limit"i "all"i                          -> limit_all
offset_part: "offset"i expr ("row"i | "rows"i)?
fetch_part: "fetch"i ("first"i | "next"i) expr? ("row"i | "rows"i) "only"i

for_clause: "for"i lock_strength lock_wait?
lock_strength: "update"i                             -> lock_update
             | "no"i "key"i "update"i                -> lock_no_key_update
             | "share"i                              -> lock_share
             | "key"i "share"i                       -> lock_key_share
lock_wait: "nowait"i                                 -> lock_nowait
         | "skip"i "locked"i                         -> lock_skip_locked

// ---------------------------------------------------------------- DML

insert_stmt: with_clause? "insert"i "into"i qualified_name insert_alias? insert_columns? insert_source on_conflict? returning_clause?
insert_alias: "as"i ident
insert_columns: "(" ident_list ")"
insert_source: "values"i values_row ("," values_row)*   -> values_source
             | query                                    -> query_source
             | "default"i "values"i                     -> default_values_source
values_row: "(" expr_list ")"

on_conflict: "on"i "conflict"i conflict_target? conflict_action
conflict_target: "(" expr_list ")"                   -> conflict_columns
               | "on"i "constraint"i ident           -> conflict_constraint
conflict_action: "do"i "nothing"i                    -> do_nothing
               | "do"i "update"i "set"i set_list where_clause?  -> do_update

returning_clause: "returning"i select_list

update_stmt: with_clause? "update"i qualified_name alias_clause? "set"i set_list from_clause? where_clause? returning_clause?
set_list: set_item ("," set_item)*
set_item: ident "=" expr

delete_stmt: with_clause? "delete"i "from"i qualified_name alias_clause? using_clause? where_clause? returning_clause?
using_clause: "using"i table_ref ("," table_ref)*

// ---------------------------------------------------------------- DDL

create_table_stmt: "create"i "table"i if_not_exists? qualified_name "(" column_def ("," column_def)* ")"
if_not_exists: "if"i "not"i "exists"i
column_def: ident type_name column_constraint*
column_constraint: "primary"i "key"i                 -> primary_key
                 | "not"i "null"i                    -> not_null
                 | "null"i                           -> nullable
                 | "unique"i                         -> unique

drop_table_stmt: "drop"i "table"i if_exists? qualified_name ("," qualified_name)*
if_exists: "if"i "exists"i

truncate_stmt: "truncate"i "table"i? qualified_name ("," qualified_name)*

alter_table_stmt: "alter"i "table"i qualified_name alter_action ("," alter_action)*
alter_action: "add"i "column"i? column_def           -> add_column
            | "drop"i "column"i? ident               -> drop_column

// ---------------------------------------------------------------- expressions

?expr: or_expr

?or_expr: and_expr
        | or_expr "or"i and_expr                     -> or_op

?and_expr: not_expr
         | and_expr "and"i not_expr                  -> and_op

?not_expr: is_expr
         | "not"i not_expr                           -> not_op

?is_expr: cmp_expr
        | is_expr "is"i "null"i                      -> is_null
        | is_expr "isnull"i                          -> is_null
        | is_expr "is"i "not"i "null"i               -> is_not_null
        | is_expr "notnull"i                         -> is_not_null
        | is_expr "is"i "true"i                      -> is_true
        | is_expr "is"i "not"i "true"i               -> is_not_true
        | is_expr "is"i "false"i                     -> is_false
        | is_expr "is"i "not"i "false"i              -> is_not_false
        | is_expr "is"i "distinct"i "from"i cmp_expr         -> is_distinct_from
        | is_expr "is"i "not"i "distinct"i "from"i cmp_expr  -> is_not_distinct_from

?cmp_expr: pred_expr
         | pred_expr comp_op pred_expr               -> comparison

?comp_op: EQ | NEQ | LTE | GTE | LT | GT

?pred_expr: other_expr
          | other_expr "between"i other_expr "and"i other_expr          -> between
          | other_expr "not"i "between"i other_expr "and"i other_expr   -> not_between
          | other_expr "in"i in_source                                  -> in_op
          | other_expr "not"i "in"i in_source                           -> not_in_op
          | other_expr "like"i other_expr                               -> like
          | other_expr "not"i "like"i other_expr                        -> not_like
          | other_expr "ilike"i other_expr                              -> ilike
          | other_expr "not"i "ilike"i other_expr                       -> not_ilike
          | other_expr "similar"i "to"i other_expr                      -> similar_to
          | other_expr "not"i "similar"i "to"i other_expr               -> not_similar_to

in_source: "(" query ")"                             -> in_subquery
         | "(" expr_list ")"                         -> in_list

?other_expr: add_expr
           | other_expr OTHER_OP add_expr            -> binary_op

?add_expr: mul_expr
         | add_expr PLUS mul_expr                    -> binary_op
         | add_expr MINUS mul_expr                   -> binary_op

?mul_expr: exp_expr
         | mul_expr STAR exp_expr                    -> binary_op
         | mul_expr SLASH exp_expr                   -> binary_op
         | mul_expr PERCENT exp_expr                 -> binary_op

?exp_expr: at_expr
         | exp_expr CARET at_expr                    -> binary_op

?at_expr: unary_expr
        | at_expr "at"i "time"i "zone"i unary_expr   -> at_time_zone

?unary_expr: postfix_expr
           | MINUS unary_expr                        -> negate
           | PLUS unary_expr                         -> unary_plus

?postfix_expr: primary
             | postfix_expr "::" type_name           -> typecast
             | postfix_expr "[" expr "]"             -> subscript

?primary: literal
        | column_ref
        | func_call
        | case_expr
        | PARAM                                      -> param_ref
        | "(" expr ")"                               -> paren_expr
        | "(" expr ")" "." ident                     -> field_access
        | "(" expr "," expr_list ")"                 -> row_expr
        | "row"i "(" expr_list? ")"                  -> row_expr
        | "(" query ")"                              -> subquery_expr
        | "exists"i "(" query ")"                    -> exists_expr
        | "array"i "[" expr_list? "]"                -> array_literal
        | "array"i "(" query ")"                     -> array_subquery
        | "cast"i "(" expr "as"i type_name ")"       -> cast_expr
        | "extract"i "(" ident "from"i expr ")"      -> extract_expr
        | "all"i "(" query ")"                       -> all_expr
        | "all"i "(" expr ")"                        -> all_expr
        | "any"i "(" query ")"                       -> any_expr
        | "any"i "(" expr ")"                        -> any_expr
        | "default"i                                 -> default_value

?literal: NUMBER                                     -> number
        | STRING                                     -> string
        | "true"i                                    -> true
        | "false"i                                   -> false
        | "null"i                                    -> null
        | (NAME | TIME) STRING                       -> typed_literal

column_ref: ident ("." ident)*

func_call: func_name "(" func_args? ")" filter_clause? over_clause?
func_name: (ident | LEFT | RIGHT) ("." ident)?
func_args: STAR                                      -> args_star
         | expr_list agg_order?                      -> args_list
         | "all"i expr_list agg_order?               -> args_list
         | "distinct"i expr_list agg_order?          -> args_distinct
agg_order: order_clause

filter_clause: "filter"i "(" "where"i expr ")"

over_clause: "over"i "(" window_spec ")"
           | "over"i ident                           -> over_named
window_spec: partition_clause? order_clause? frame_clause?
partition_clause: "partition"i "by"i expr_list
frame_clause: ("rows"i | "range"i) frame_extent
frame_extent: frame_bound
            | "between"i frame_bound "and"i frame_bound
frame_bound: "unbounded"i "preceding"i
           | "unbounded"i "following"i
           | "current"i "row"i
           | expr "preceding"i
           | expr "following"i

case_expr: "case"i when_clause+ else_clause? "end"i        -> case_searched
         | "case"i expr when_clause+ else_clause? "end"i   -> case_simple
when_clause: "when"i expr "then"i expr
else_clause: "else"i expr

expr_list: expr ("," expr)*
ident_list: ident ("," ident)*
qualified_name: ident ("." ident)*

type_name: type_base type_modifier? array_bounds*
type_base: (NAME | TIME) ("." NAME)?                 -> type_simple
         | NAME "precision"i                         -> type_precision
         | NAME "varying"i                           -> type_varying
         | (NAME | TIME) "with"i "time"i "zone"i     -> type_with_time_zone
         | (NAME | TIME) "without"i "time"i "zone"i  -> type_without_time_zone
type_modifier: "(" NUMBER ("," NUMBER)* ")"
array_bounds: "[" "]"

?ident: NAME
      | QUOTED_NAME
      | unreserved_keyword

?unreserved_keyword: KEY | TIME | ZONE | FIRST | LAST | NULLS | ROWS | NEXT
                   | ONLY | CONFLICT | NOTHING | DO

// ---------------------------------------------------------------- terminals

KEY: "key"i
TIME: "time"i
ZONE: "zone"i
FIRST: "first"i
LAST: "last"i
NULLS: "nulls"i
ROWS: "rows"i
NEXT: "next"i
ONLY: "only"i
CONFLICT: "conflict"i
NOTHING: "nothing"i
DO: "do"i
LEFT: "left"i
RIGHT: "right"i

NAME: /[a-z_][a-z0-9_$]*/i
QUOTED_NAME: /"(?:[^"]|"")+"/
STRING: /'(?:[^']|'')*'/
NUMBER: /(?:\d+\.\d*|\.\d+|\d+)(?:e[+-]?\d+)?/i
PARAM: /\$\d+/

OTHER_OP: /->>|->|#>>|#>|#-|@>|<@|@@|@\?|\?\||\?&|\?|\|\||&&|!~\*|!~|~\*|~|<->|<<|>>|\||&/
EQ: "="
NEQ: "<>" | "!="
LTE: "<="
GTE: ">="
LT: "<"
GT: ">"
PLUS: "+"
MINUS: "-"
STAR: "*"
SLASH: "/"
PERCENT: "%"
CARET: "^"

_SEMI: ";"

LINE_COMMENT: /--[^\n]*/
BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

%import common.WS
%ignore WS
%ignore LINE_COMMENT
%ignore BLOCK_COMMENT
"""
